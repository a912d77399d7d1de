"""Voice input and output module boundaries."""

from .input import MicrophoneSource, SpeechCaptureService, UnsupportedSpeechCapture
from .interfaces import SpeechCapture, SpeechOutput, SpeechRecognizer, SpeechSynthesizer
from .output import AudioOutputDevice, SpeechOutputService, VoiceOutputConfig

__all__ = [
    "AudioOutputDevice",
    "MicrophoneSource",
    "SpeechCapture",
    "SpeechCaptureService",
    "SpeechOutput",
    "SpeechOutputService",
    "SpeechRecognizer",
    "SpeechSynthesizer",
    "UnsupportedSpeechCapture",
    "VoiceOutputConfig",
]
