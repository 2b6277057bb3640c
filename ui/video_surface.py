"""
Streamlit-backed playback surface.
"""

import logging
from typing import Optional

import streamlit as st

logger = logging.getLogger(__name__)


class StreamlitVideoSurface:
    """
    Renders one video with ``st.video``.

    Streamlit cannot drive an already-rendered player, so play/pause records
    the intended state and the next render applies it through ``autoplay``.
    """

    def __init__(self, muted: bool = False):
        self.muted = muted
        self._playing = False
        self._disposed = False
        self.source: Optional[str] = None

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def play(self):
        if self._disposed:
            raise RuntimeError("Video surface already disposed")
        self._playing = True

    def pause(self):
        if self._disposed:
            raise RuntimeError("Video surface already disposed")
        self._playing = False

    def dispose(self):
        self._playing = False
        self._disposed = True
        self.source = None

    def render(self, url: str):
        if self._disposed:
            logger.debug("Render skipped: surface disposed")
            return
        self.source = url
        st.video(url, autoplay=self._playing, muted=self.muted)
