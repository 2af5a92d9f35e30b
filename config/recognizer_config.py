#!/usr/bin/env python3
"""
Recognizer Endpoint Configuration
Cloud speech API used for all sessions
"""

RECOGNIZER_CONFIG = {
    'url': 'https://www.google.com/speech-api/v1/recognize',
    'client': 'chromium',
    'timeout': 10,  # seconds, bounds the single POST
    'user_agent': 'speech-recog-agi/1.0',
}
