"""
Configuration for eNyayaSetu Backend
====================================

Environment variables:
- AI_GATEWAY_API_KEY: Bearer key for the hosted AI gateway
- AI_GATEWAY_URL: Chat-completions URL (default: Lovable AI gateway)
- DEFAULT_MODEL: Model for chat/OCR/judge calls (default: google/gemini-2.5-flash)
- CASE_ASSISTANT_MODEL: Model for procedural analysis (default: google/gemini-2.0-flash-exp)
- OLLAMA_ENDPOINT: Local model server (default: http://localhost:11434)
- ELEVENLABS_API_KEY: API key for text-to-speech
- RAZORPAY_WEBHOOK_SECRET: Enables webhook signature checks when set
- LLM_TIMEOUT: Outbound HTTP timeout in seconds (default: 60)
"""

from typing import Optional, List
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # AI gateway (OpenAI-compatible chat completions)
    ai_gateway_api_key: Optional[str] = None
    ai_gateway_url: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    default_model: str = "google/gemini-2.5-flash"
    case_assistant_model: str = "google/gemini-2.0-flash-exp"

    # Local model routing
    ollama_endpoint: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"

    # Speech synthesis
    elevenlabs_api_key: Optional[str] = None
    elevenlabs_base_url: str = "https://api.elevenlabs.io/v1"
    tts_model_id: str = "eleven_multilingual_v2"
    tts_output_format: str = "mp3_44100_128"

    # Payments
    razorpay_webhook_secret: Optional[str] = None
    default_session_fee: float = 1200.0
    currency: str = "INR"

    # Lawyer OTP
    lawyer_otp_ttl_minutes: int = 15

    # Evidence uploads
    upload_dir: str = "./uploads/evidence"
    max_upload_bytes: int = 10 * 1024 * 1024

    # Timeouts (seconds)
    llm_timeout: int = 60

    # Service info
    service_version: str = "1.0.0"

    class Config:
        env_prefix = ""
        case_sensitive = False
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def validate_config(self) -> List[str]:
        """Validate external service configuration, return list of warnings"""
        warnings = []

        if not self.ai_gateway_api_key:
            warnings.append("AI_GATEWAY_API_KEY not set - AI endpoints will fail unless useOllama is used")

        if not self.elevenlabs_api_key:
            warnings.append("ELEVENLABS_API_KEY not set - text-to-speech disabled")

        if not self.razorpay_webhook_secret:
            warnings.append("RAZORPAY_WEBHOOK_SECRET not set - webhook signatures are not verified")

        return warnings


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
