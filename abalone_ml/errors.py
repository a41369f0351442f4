"""Fatal error taxonomy shared by the training and inference pipelines."""


class PipelineError(Exception):
    """Base class. Every subclass aborts the current run; none are retried."""


class EmptyDataset(PipelineError):
    """The training stream produced zero rows."""


class SchemaMismatch(PipelineError):
    """A row's field set diverges from the established feature order."""


class MissingFeature(PipelineError):
    """A name from the feature order is absent from the row being vectorized."""

    def __init__(self, feature: str, message: str = ""):
        self.feature = feature
        super().__init__(message or f"Required feature '{feature}' is missing from row")


class ArtifactMissing(PipelineError):
    """The schema or model artifact does not exist."""


class ArtifactCorrupt(PipelineError):
    """The schema or model artifact exists but cannot be parsed."""


class ArtifactWriteFailed(PipelineError):
    """Persisting the model or schema artifact failed; nothing was published."""


class DataSourceError(PipelineError):
    """The input table is absent or could not be read to the end."""
