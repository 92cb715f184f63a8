from .audio_log import AudioLogPipeline, PipelineOutcome

__all__ = ["AudioLogPipeline", "PipelineOutcome"]
