"""Risk model preset registry backed by `settings/risk_models.json`."""

import json
import logging
from pathlib import Path
from threading import RLock
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from models.exceptions import UnknownModelError
from models.risk_models import RiskModelPreset


logger = logging.getLogger(__name__)

DEFAULT_MODEL_ID = "comprehensive"
_DEFAULT_REGISTRY_PATH = Path(__file__).resolve().parents[1] / "settings" / "risk_models.json"


class RiskModelRegistry:
    """Loader and lookup utility for risk model presets.

    Presets are data: adding a model means adding a row to the JSON file.
    Rows are validated on load; invalid rows and duplicate ids are skipped.
    """

    def __init__(
        self,
        path: Optional[str] = None,
        default_model_id: str = DEFAULT_MODEL_ID,
        presets: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        """Initialize registry from a JSON path or an explicit list of rows."""
        self._path = Path(path).resolve() if path else _DEFAULT_REGISTRY_PATH
        self._default_model_id = str(default_model_id or DEFAULT_MODEL_ID).strip().lower()
        self._lock = RLock()
        self._presets: List[RiskModelPreset] = []
        self._preset_map: Dict[str, RiskModelPreset] = {}
        if presets is not None:
            self._load_rows(presets)
        else:
            self._load_presets()

    @property
    def path(self) -> str:
        """Return registry JSON path."""
        return str(self._path)

    @property
    def default_model_id(self) -> str:
        return self._default_model_id

    def _load_presets(self) -> None:
        """Read and validate presets from file."""
        with self._lock:
            if not self._path.exists():
                logger.warning("Risk models file not found at path=%s", self._path)
                self._presets = []
                self._preset_map = {}
                return
            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                logger.exception("Failed loading risk models from path=%s", self._path)
                raise
            if not isinstance(raw, list):
                raise ValueError("Risk models file must contain a JSON array.")
            self._load_rows(raw)
            logger.info("Loaded risk models count=%d from path=%s", len(self._presets), self._path)

    def _load_rows(self, rows: List[Dict[str, Any]]) -> None:
        loaded: List[RiskModelPreset] = []
        loaded_map: Dict[str, RiskModelPreset] = {}
        for row in rows:
            try:
                preset = RiskModelPreset.model_validate(row)
            except ValidationError:
                logger.exception("Invalid risk model row skipped row=%s", row)
                continue
            if preset.model_id in loaded_map:
                logger.warning("Duplicate risk model id found and skipped model_id=%s", preset.model_id)
                continue
            loaded.append(preset)
            loaded_map[preset.model_id] = preset
        with self._lock:
            self._presets = loaded
            self._preset_map = loaded_map

    def get(self, model_id: Optional[str] = None) -> RiskModelPreset:
        """Return one enabled preset; None resolves to the default model.

        Raises:
            UnknownModelError: If the id is not registered or is disabled.
        """
        normalized = str(model_id).strip().lower() if model_id is not None else self._default_model_id
        if not normalized:
            normalized = self._default_model_id
        with self._lock:
            preset = self._preset_map.get(normalized)
        if preset is None or not preset.enabled:
            logger.info("Unknown risk model requested model_id=%s", model_id)
            raise UnknownModelError("Unknown risk model: {0}".format(model_id))
        return preset

    def list_presets(self, include_disabled: bool = False) -> List[RiskModelPreset]:
        """Return presets in file order."""
        with self._lock:
            return [preset for preset in self._presets if include_disabled or preset.enabled]

    def list_models(self) -> List[Dict[str, Any]]:
        """Return enabled presets as serializable dictionaries."""
        return [preset.model_dump(mode="json") for preset in self.list_presets()]

