"""
General application configuration for ChatterHub.

This module contains application-wide settings read from the environment.
"""
import os

# Server configuration
DEFAULT_PORT = int(os.getenv('CHATTERHUB_PORT', '7070'))
DEFAULT_HOST = os.getenv('CHATTERHUB_HOST', '127.0.0.1')

# New chat groups
DEFAULT_MODEL = os.getenv('CHATTERHUB_DEFAULT_MODEL', 'gpt-4o-mini')
DEFAULT_CHAT_TITLE = 'New Chat'
INCOGNITO_CHAT_TITLE = 'Incognito Chat'
SMART_TITLE_MAX_LENGTH = 50

# Temporary (incognito) chat groups are removed after this much inactivity
TEMPORARY_CHAT_TTL_MINUTES = int(os.getenv('CHATTERHUB_TEMPORARY_CHAT_TTL_MINUTES', '5'))

# On-disk collection file format
COLLECTION_FILE_VERSION = 1

# Export archive format
EXPORT_FORMAT_VERSION = '1.0'

# ChatGPT conversation import
CHATGPT_FALLBACK_MODEL = 'gpt-4o'
CHATGPT_FLAT_FOLDER_NAME = 'imported'
