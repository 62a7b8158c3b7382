"""
Pipeline stages for brief generation.

Each stage is a plain async function over an external collaborator. Stages
know nothing about the job store; sequencing and progress checkpoints belong
to the dispatcher.
"""
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol

from briefcast.config import AUDIO_BYTES_PER_SECOND, DEFAULT_BILL_COUNT
from briefcast.exceptions import EmptyAudioError, EmptyScriptError, NoContentError
from briefcast.models.job import JobType
from briefcast.schemas.job import JobPayload, JobRecord
from briefcast.schemas.notification import Notification
from briefcast.schemas.pipeline import ContentRecord, DialogueLine, UploadMetadata


@dataclass(frozen=True)
class Checkpoint:
    progress: int
    message: str


STARTED = Checkpoint(0, 'Starting podcast generation...')
FETCHING = Checkpoint(20, 'Fetching congressional bills...')
SCRIPTING = Checkpoint(40, 'Generating dialogue script...')
SYNTHESIZING = Checkpoint(60, 'Creating audio (this takes 1-2 minutes)...')
UPLOADING = Checkpoint(80, 'Uploading to cloud storage...')
SAVING = Checkpoint(90, 'Saving podcast metadata...')
DONE = Checkpoint(100, 'Podcast ready!')


class ContentSource(Protocol):
    async def fetch(self, content_ids: List[str], limit: int) -> List[ContentRecord]:
        ...


class ScriptGenerator(Protocol):
    async def generate(self, records: List[ContentRecord], job_type: JobType) -> List[DialogueLine]:
        ...


class AudioSynthesizer(Protocol):
    async def synthesize(self, lines: List[DialogueLine]) -> bytes:
        ...


class ObjectStorage(Protocol):
    async def upload(self, audio: bytes, metadata: UploadMetadata) -> str:
        ...


class MetadataRepository(Protocol):
    async def save(
        self,
        job: JobRecord,
        audio_url: str,
        transcript: str,
        records: List[ContentRecord],
        duration: int,
    ) -> None:
        ...


class Notifier(Protocol):
    async def send(self, notification: Notification) -> None:
        ...


@dataclass
class PipelineServices:
    """External collaborators used by the dispatcher."""
    content_source: ContentSource
    script_generator: ScriptGenerator
    audio_synthesizer: AudioSynthesizer
    object_storage: ObjectStorage
    metadata_repository: MetadataRepository
    notifier: Notifier
    http_client: Optional[Any] = None

    async def aclose(self):
        if self.http_client is not None:
            await self.http_client.aclose()


def bill_limit(job_type: JobType, payload: JobPayload) -> int:
    """Number of bills to request: explicit ids, then bill_count, then the type default."""
    if payload.content_ids:
        return len(payload.content_ids)
    return payload.bill_count or DEFAULT_BILL_COUNT[JobType(job_type).value]


async def fetch_content(source: ContentSource, job_type: JobType, payload: JobPayload) -> List[ContentRecord]:
    """
    Fetch the bills a brief will cover.

    Raises:
        NoContentError: the source returned no records
    """
    records = await source.fetch(payload.content_ids, bill_limit(job_type, payload))
    if not records:
        raise NoContentError()
    return list(records)


async def generate_script(
    generator: ScriptGenerator,
    records: List[ContentRecord],
    job_type: JobType,
) -> List[DialogueLine]:
    """
    Generate the two-host dialogue for the given bills.

    Raises:
        EmptyScriptError: the generator returned no lines
    """
    lines = await generator.generate(records, job_type)
    if not lines:
        raise EmptyScriptError()
    return list(lines)


async def synthesize_audio(synthesizer: AudioSynthesizer, lines: List[DialogueLine]) -> bytes:
    """Render dialogue to audio. Service errors propagate unchanged."""
    audio = await synthesizer.synthesize(lines)
    if not audio:
        raise EmptyAudioError()
    return audio


async def upload_audio(storage: ObjectStorage, audio: bytes, metadata: UploadMetadata) -> str:
    """Store audio durably and return its URL. Service errors propagate unchanged."""
    return await storage.upload(audio, metadata)


async def persist_metadata(
    repository: MetadataRepository,
    job: JobRecord,
    audio_url: str,
    transcript: str,
    records: List[ContentRecord],
    duration: int,
) -> None:
    await repository.save(job, audio_url, transcript, records, duration)


def estimate_duration(audio: bytes, bytes_per_second: Optional[int] = None) -> int:
    """Approximate audio length in seconds from its size (192kbps MP3)."""
    return round(len(audio) / (bytes_per_second or AUDIO_BYTES_PER_SECOND))


def format_transcript(lines: List[DialogueLine]) -> str:
    return '\n\n'.join(f'{line.speaker.upper()}: {line.text}' for line in lines)
