"""
Clients for the external services the pipeline depends on.
"""
from briefcast.clients.base import create_http_client
from briefcast.clients.claude import ClaudeScriptGenerator
from briefcast.clients.congress import CongressContentSource
from briefcast.clients.elevenlabs import ElevenLabsSynthesizer
from briefcast.clients.storage import LocalAudioStorage

__all__ = [
    'create_http_client',
    'ClaudeScriptGenerator',
    'CongressContentSource',
    'ElevenLabsSynthesizer',
    'LocalAudioStorage',
]
