"""
eNyayaSetu Backend - Virtual Indian Courtroom Service
=====================================================

HTTP handlers for a simulated Indian e-court:
1. Chat-guided case intake and procedural case analysis
2. AI judge / courtroom chat, OCR and text-to-speech relays
3. Cases, evidence, hearing sessions, notifications and payments

AI features are pass-throughs to an OpenAI-compatible gateway (or a local
Ollama model); speech goes to ElevenLabs.
"""

__version__ = "1.0.0"
