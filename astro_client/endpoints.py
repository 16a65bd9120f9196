"""Backend routes consumed by the client."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Endpoint:
    method: str
    path: str

    def format(self, **params: str) -> Endpoint:
        """Fill path placeholders such as ``{sign}``."""

        return Endpoint(self.method, self.path.format(**params))

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


HEALTH = Endpoint("GET", "/health")
LIST_MODELS = Endpoint("GET", "/api/ollama/models")
CHAT = Endpoint("POST", "/api/ollama/chat")
SINGLE_HOROSCOPE = Endpoint("POST", "/api/generate_single_horoscope")
DAILY_HOROSCOPES = Endpoint("POST", "/api/generate_daily_horoscopes")
ASTRAL_CONTEXT = Endpoint("POST", "/api/get_astral_context")
CHART_IMAGE = Endpoint("POST", "/api/astrochart/generate_image")
GENERATE_VIDEO = Endpoint("POST", "/api/comfyui/generate_video")
COMFYUI_STATUS = Endpoint("GET", "/api/comfyui/status")
SIGN_WORKFLOW = Endpoint("POST", "/api/workflow/complete_sign_generation")
YOUTUBE_STATUS = Endpoint("GET", "/api/youtube/status")
YOUTUBE_UPLOAD = Endpoint("POST", "/api/youtube/upload_sign/{sign}")
TIKTOK_UPLOAD = Endpoint("POST", "/api/tiktok/upload_sign/{sign}")
