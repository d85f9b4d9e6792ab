"""Adapters for camera, speech and location collaborators."""

from .base import CaptureProvider, LocationProvider, SpeechInput, SpeechOutput
from .capture import (
    OpenCVCaptureProvider,
    StaticImageCaptureProvider,
    UnsupportedCaptureProvider,
    bind_capture,
    encode_frame,
)
from .location import (
    IpLocationProvider,
    StaticLocationProvider,
    UnsupportedLocationProvider,
    bind_location,
)
from .speech import (
    ConsoleSpeechOutput,
    KeyboardSpeechInput,
    Pyttsx3SpeechOutput,
    SpeechRecognitionInput,
    UnsupportedSpeechInput,
    UnsupportedSpeechOutput,
    bind_speech_input,
    bind_speech_output,
    select_voice,
)

__all__ = [
    "CaptureProvider",
    "LocationProvider",
    "SpeechInput",
    "SpeechOutput",
    "OpenCVCaptureProvider",
    "StaticImageCaptureProvider",
    "UnsupportedCaptureProvider",
    "bind_capture",
    "encode_frame",
    "IpLocationProvider",
    "StaticLocationProvider",
    "UnsupportedLocationProvider",
    "bind_location",
    "ConsoleSpeechOutput",
    "KeyboardSpeechInput",
    "Pyttsx3SpeechOutput",
    "SpeechRecognitionInput",
    "UnsupportedSpeechInput",
    "UnsupportedSpeechOutput",
    "bind_speech_input",
    "bind_speech_output",
    "select_voice",
]
