"""
Audio Processing Layer for the interview engine

Handles:
- Speech-to-Text for voice answers, via the ML transcription service
  or a local Whisper model
- Text-to-Speech of questions for live mode, using Edge TTS

Transcription failures are fatal to the submitting operation; speech
synthesis failures only cost the audio, never the question.
"""

import asyncio
import logging
import tempfile
from pathlib import Path
from typing import Any, Awaitable, Callable

import httpx

from interview_engine.config.settings import Settings, get_settings
from interview_engine.core.errors import TranscriptionFailed
from interview_engine.core.retry import RetryPolicy, retry_async
from interview_engine.models.interview import Transcription

logger = logging.getLogger(__name__)


class AudioProcessor:
    """
    Central audio processing component.

    STT: ML service ``POST /transcribe`` (multipart field ``audio``) or local Whisper
    TTS: Edge TTS, returning MP3 bytes
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize audio processor."""
        self.settings = settings or get_settings()
        self.client = client or httpx.AsyncClient(
            timeout=self.settings.transcription_timeout_seconds,
        )
        self.retry_policy = retry_policy or RetryPolicy.from_settings(self.settings)
        self._sleep = sleep

        # Lazy-loaded model
        self._whisper_model = None

    async def close(self):
        """Clean up resources."""
        await self.client.aclose()

    # =========================================================================
    # SPEECH-TO-TEXT
    # =========================================================================

    async def transcribe(
        self,
        audio_data: bytes,
        filename: str = "answer.webm",
        content_type: str = "audio/webm",
    ) -> Transcription:
        """
        Transcribe a recorded answer.

        Args:
            audio_data: Raw audio bytes as uploaded
            filename: Original file name, forwarded to the service
            content_type: MIME type of the recording

        Returns:
            Transcription with text, duration and word count

        Raises:
            TranscriptionFailed: Empty or unintelligible audio, or the
                service is unreachable after retries
        """
        if not audio_data:
            raise TranscriptionFailed("No audio data received")

        logger.info(f"Transcribing {len(audio_data)} bytes of {content_type}")

        if self.settings.use_local_whisper:
            return await self._transcribe_local(audio_data, filename)

        try:
            result = await retry_async(
                lambda: self._transcribe_api(audio_data, filename, content_type),
                self.retry_policy,
                "transcription",
                sleep=self._sleep,
            )
        except TranscriptionFailed:
            raise
        except Exception as e:
            raise TranscriptionFailed(f"Transcription service error: {e}") from e

        if not result.text.strip():
            raise TranscriptionFailed("No speech detected in audio")
        return result

    async def _transcribe_api(
        self,
        audio_data: bytes,
        filename: str,
        content_type: str,
    ) -> Transcription:
        """Transcribe using the ML transcription service."""
        url = f"{self.settings.transcription_url.rstrip('/')}/transcribe"
        files = {
            "audio": (filename, audio_data, content_type),
        }

        response = await self.client.post(url, files=files)
        response.raise_for_status()

        payload: dict[str, Any] = response.json()
        if not payload.get("success"):
            raise TranscriptionFailed(payload.get("error") or "Failed to transcribe audio")

        data = payload.get("data") or {}
        text = str(data.get("text") or "").strip()
        return Transcription(
            text=text,
            duration_seconds=float(data.get("duration") or 0.0),
            word_count=int(data.get("wordCount") or len(text.split())),
        )

    async def _transcribe_local(self, audio_data: bytes, filename: str) -> Transcription:
        """Transcribe using local Whisper model."""
        suffix = Path(filename).suffix or ".wav"
        try:
            if self._whisper_model is None:
                await self._load_whisper_model()

            with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as f:
                f.write(audio_data)
                temp_path = f.name

            try:
                # Run transcription in thread pool to avoid blocking
                loop = asyncio.get_running_loop()
                result = await loop.run_in_executor(
                    None,
                    self._run_whisper_transcription,
                    temp_path,
                )
            finally:
                Path(temp_path).unlink(missing_ok=True)

        except Exception as e:
            logger.error(f"Local transcription failed: {e}")
            raise TranscriptionFailed(f"Local transcription failed: {e}") from e

        text = result.get("text", "").strip()
        if not text:
            raise TranscriptionFailed("No speech detected in audio")

        segments = result.get("segments") or []
        duration = float(segments[-1].get("end", 0.0)) if segments else 0.0
        return Transcription(text=text, duration_seconds=duration, word_count=len(text.split()))

    async def _load_whisper_model(self):
        """Load Whisper model lazily (requires the ``voice`` extra)."""
        import whisper

        logger.info(f"Loading Whisper model: {self.settings.whisper_model}")
        loop = asyncio.get_running_loop()
        self._whisper_model = await loop.run_in_executor(
            None,
            whisper.load_model,
            self.settings.whisper_model,
        )
        logger.info("Whisper model loaded successfully")

    def _run_whisper_transcription(self, audio_path: str) -> dict[str, Any]:
        """Run Whisper transcription (blocking, runs in thread pool)."""
        return self._whisper_model.transcribe(audio_path, language="en", fp16=False)

    # =========================================================================
    # TEXT-TO-SPEECH
    # =========================================================================

    async def synthesize(self, text: str, voice: str | None = None) -> bytes | None:
        """
        Convert question text to speech.

        Args:
            text: Text to synthesize
            voice: Edge TTS voice name (defaults to settings)

        Returns:
            MP3 bytes, or None when TTS is disabled or fails
        """
        if not self.settings.tts_enabled or not text.strip():
            return None

        try:
            import edge_tts

            communicate = edge_tts.Communicate(text, voice or self.settings.tts_voice)

            audio_chunks = []
            async for chunk in communicate.stream():
                if chunk["type"] == "audio":
                    audio_chunks.append(chunk["data"])

            audio_data = b"".join(audio_chunks)
            return audio_data or None

        except Exception as e:
            logger.warning(f"Speech synthesis failed, returning text only: {e}")
            return None
