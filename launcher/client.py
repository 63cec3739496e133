#!/usr/bin/env python3
# client.py
# -*- coding: utf-8 -*-
import io
import logging
import wave
from typing import Optional

import httpx
from pydantic import BaseModel

from utils.env import DEFAULT_SERVER_URL

logger = logging.getLogger(__name__)


class SynthesisRequest(BaseModel):
    text: str
    speaker_id: Optional[int] = None
    length_scale: Optional[float] = None
    noise_scale: Optional[float] = None
    noise_w_scale: Optional[float] = None


class PiperHTTPClient:
    def __init__(self, base_url: str = DEFAULT_SERVER_URL, timeout: float = 300.0):
        """
        Client for a running piper HTTP server.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Content-Type": "application/json",
        }

    def synthesize(
        self,
        text: str,
        speaker_id: Optional[int] = None,
        length_scale: Optional[float] = None,
        noise_scale: Optional[float] = None,
        noise_w_scale: Optional[float] = None,
    ) -> bytes:
        """
        Send text to the server and return the WAV it produced.

        Raises:
            ValueError: If there is nothing to speak.
            RuntimeError: If the server answers with an error or non-WAV data.
            httpx.HTTPError: If the server cannot be reached.
        """
        if not text or not text.strip():
            raise ValueError("No text to speak")

        payload = SynthesisRequest(
            text=text,
            speaker_id=speaker_id,
            length_scale=length_scale,
            noise_scale=noise_scale,
            noise_w_scale=noise_w_scale,
        )

        logger.info(
            f"Requesting TTS from {self.base_url}, text length: {len(text)}"
        )
        with httpx.Client(timeout=self.timeout) as client:
            response = client.post(
                self.base_url + "/",
                json=payload.model_dump(exclude_none=True),
                headers=self.headers,
            )

        if response.status_code != 200:
            logger.error(f"Piper API Error: {response.text}")
            raise RuntimeError(f"Failed to generate TTS: {response.text}")

        content = response.content
        if not content.startswith(b"RIFF"):
            raise RuntimeError("Piper server did not return WAV audio")

        logger.debug(f"Response content size: {len(content)} bytes")
        return content

    def speak(self, text: str, output_file: str, **options) -> str:
        audio = self.synthesize(text, **options)
        try:
            with wave.open(io.BytesIO(audio)) as wav:
                duration = wav.getnframes() / float(wav.getframerate())
        except (wave.Error, EOFError) as e:
            raise RuntimeError(f"Piper server returned an unreadable WAV: {e}") from e

        with open(output_file, "wb") as f:
            f.write(audio)
        logger.info(f"Wrote {duration:.2f}s of audio to {output_file}")
        return output_file
