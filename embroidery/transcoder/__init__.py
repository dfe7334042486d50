"""
Transcoder / contingency engine.

Rewrites a Pattern IR stream so it obeys a target machine's numeric and
capability limits (stitch/jump length, sequins, speeds, color changes).
"""

from embroidery.transcoder.encoder import Transcoder, transcode
from embroidery.transcoder.settings import EncoderSettings

__all__ = [
    "EncoderSettings",
    "Transcoder",
    "transcode",
]
