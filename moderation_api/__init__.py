"""Content moderation gateway for a local Ollama inference backend."""
