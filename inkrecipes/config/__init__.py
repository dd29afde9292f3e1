"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Main application settings and environment configuration
- database: Redis connection pool used by mixup persistence
- logging: Structured logging configuration
"""
