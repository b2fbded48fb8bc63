"""Control API - HTTP control surface for the radio engine.

Wires the playlist store, cache synchronizer, manifest generator and stream
supervisor behind one controller and exposes it through FastAPI.
"""

from control_api.config import ApiConfig
from control_api.controller import RadioController, build_controller

__version__ = "1.0.0"
__all__ = ["ApiConfig", "RadioController", "build_controller"]
