"""Voice pipeline stages and orchestration."""

from .orchestrator import VoicePipeline
from .transcription import TranscriptionAdapter, resolve_audio_ref

__all__ = ["TranscriptionAdapter", "VoicePipeline", "resolve_audio_ref"]
