"""
Abalone-ML Performance Testing Suite
------------------------------------
Load testing scenarios for the Abalone-ML inference API. Simulates
concurrent clients to measure latency (P50, P90, P95) of single-row and
batched prediction requests.

Run with:
    locust -f locustfile.py --host http://localhost:7860
"""

import random
from locust import HttpUser, task, between


def random_row(row_id: int) -> dict:
    """One unlabeled abalone row with plausible measurements."""
    length = random.uniform(0.1, 0.8)
    whole = random.uniform(0.01, 2.5)
    return {
        "id": row_id,
        "Sex": random.choice(["M", "F", "I"]),
        "Length": length,
        "Diameter": length * 0.8,
        "Height": length * 0.27,
        "Whole weight": whole,
        "Whole weight.1": whole * 0.43,
        "Whole weight.2": whole * 0.21,
        "Shell weight": whole * 0.29,
    }


class AbaloneMlTester(HttpUser):
    """
    Simulates a client scoring abalone rows against the published model.

    Attributes:
        wait_time (callable): Simulates client 'think time' between 1 to 3 seconds.
    """

    wait_time = between(1, 3)

    @task(3)
    def test_predict_single(self):
        """Benchmarks the per-row path: one vectorize + one model call."""
        payload = {"rows": [random_row(random.randint(0, 10_000))]}
        self.client.post("/predict", json=payload, name="POST /predict [1 row]")

    @task(1)
    def test_predict_batch(self):
        """Benchmarks a 64-row request, the typical batch client size."""
        payload = {"rows": [random_row(i) for i in range(64)]}
        self.client.post("/predict", json=payload, name="POST /predict [64 rows]")

    @task(1)
    def test_health(self):
        """Baseline latency of an endpoint that does no model work."""
        self.client.get("/health", name="GET /health")
