"""
Application-wide settings and environment configuration
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
NOTEQ_ROOT = Path(__file__).parent.parent

# Environment
ENV = os.getenv("NOTEQ_ENV", "development")
DEBUG = ENV == "development"

# API Configuration
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
LOG_LEVEL = os.getenv("NOTEQ_LOG_LEVEL", "INFO")

# Google Cloud / Gemini
GOOGLE_CLOUD_PROJECT = os.getenv("GOOGLE_CLOUD_PROJECT")
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash-001")
GEMINI_LOCATION = os.getenv("GEMINI_LOCATION", "us-central1")
GEMINI_TEMPERATURE = float(os.getenv("GEMINI_TEMPERATURE", "0.2"))

# Feature Flags
USE_LLM = os.getenv("NOTEQ_USE_LLM", "false").lower() == "true"

# Taxonomy policy: "categories" (one category per note) or "labels" (free-form tags)
TAXONOMY_POLICY = os.getenv("NOTEQ_TAXONOMY", "categories").lower()

# Development identity (skips Google token verification when no bearer token is sent)
DEV_AUTH_BYPASS = os.getenv("NOTEQ_DEV_AUTH_BYPASS", "false").lower() == "true"
DEV_AUTH_EMAIL = os.getenv("NOTEQ_DEV_AUTH_EMAIL", "local@noteq.dev")
GOOGLE_OAUTH_CLIENT_ID = os.getenv("GOOGLE_OAUTH_CLIENT_ID")


def is_production() -> bool:
    """Check if running in production"""
    return ENV == "production"


def is_development() -> bool:
    """Check if running in development"""
    return ENV == "development"
