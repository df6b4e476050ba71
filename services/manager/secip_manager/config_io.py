from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from secip_manager.errors import ValidationError
from secip_manager.models import Config

DEFAULT_CONFIG_PATH = "/etc/secip/config.yaml"


def load_config(path: Optional[Union[str, Path]] = None) -> Config:
    """
    Читает YAML и валидирует его моделью Config.
    Файла нет -> все значения по умолчанию.
    """
    p = Path(path or os.environ.get("SECIP_CONFIG", DEFAULT_CONFIG_PATH))
    if not p.exists():
        cfg = Config()
    else:
        try:
            with p.open("r", encoding="utf-8") as f:
                doc = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValidationError(f"config {p}: invalid YAML: {e}") from e
        if doc is None:
            doc = {}
        if not isinstance(doc, dict):
            raise ValidationError(f"config {p}: top level must be a mapping")
        try:
            cfg = Config.model_validate(doc)
        except PydanticValidationError as e:
            raise ValidationError(f"config {p}: {e}") from e

    # как в исходном скрипте: OCID security list можно отдать через окружение
    if not cfg.prefix.security_list_id and os.environ.get("Security_List"):
        cfg.prefix.security_list_id = os.environ["Security_List"]
    return cfg
