#!/usr/bin/env python3
"""
Cloud speech recognizer HTTP client
One blocking POST per session, raw encoded audio as the body.
"""

import logging
from typing import Optional

import requests

from config.recognizer_config import RECOGNIZER_CONFIG
from src.errors import FatalSessionError


class RecognizerClient:
    """Posts encoded audio to the recognition endpoint"""

    def __init__(self, url: str, client: str = RECOGNIZER_CONFIG['client'],
                 timeout: float = RECOGNIZER_CONFIG['timeout'],
                 session: Optional[requests.Session] = None):
        self.url = url
        self.client = client
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers['User-Agent'] = RECOGNIZER_CONFIG['user_agent']
        self.logger = logging.getLogger('RecognizerClient')

    def build_params(self, language: str, profanity_filter: int, grammar: str, max_results: int) -> dict:
        return {
            'xjerr': 1,
            'client': self.client,
            'lang': language,
            'pfilter': profanity_filter,
            'lm': grammar,
            'maxresults': max_results,
        }

    def recognize(self, payload: bytes, content_type: str, language: str,
                  profanity_filter: int, grammar: str, max_results: int) -> str:
        """
        Upload one encoded recording.

        Returns:
            Response body text

        Raises:
            FatalSessionError: on connection failure, timeout or non-2xx status
        """
        params = self.build_params(language, profanity_filter, grammar, max_results)
        self.logger.info(f"Uploading {len(payload)} bytes ({content_type}) to {self.url}")
        self.logger.debug(f"Request params: {params}")

        try:
            response = self.session.post(
                self.url,
                params=params,
                data=payload,
                headers={'Content-Type': content_type},
                timeout=self.timeout,
            )
            self.logger.info(f"Response Status: {response.status_code}")
            self.logger.debug(f"Raw Response: {response.text.strip()}")
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Recognizer request failed: {e}")
            raise FatalSessionError(f"Unable to get recognition results: {e}") from e

        return response.text
