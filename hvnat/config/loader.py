# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# hvnat/config/loader.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..core.exceptions import ConfigNotFound, ConfigParseError
from .model import ReconciliationConfig
from .validator import merge_action_override, validate_document

YAML_SUFFIXES = (".yaml", ".yml")


def load_document(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a network document. `.yaml`/`.yml` go through yaml.safe_load,
    everything else is parsed as JSON.
    """
    p = Path(path).expanduser()
    if not p.is_file():
        raise ConfigNotFound(msg=f"Config file not found: {p}", context={"path": str(p)})

    try:
        text = p.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigParseError(msg=f"Cannot read config {p}: {e}", cause=e, context={"path": str(p)})

    try:
        if p.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigParseError(
            msg=f"Invalid JSON in {p}: {e.msg} (line {e.lineno}, column {e.colno})",
            cause=e,
            context={"path": str(p)},
        )
    except yaml.YAMLError as e:
        raise ConfigParseError(msg=f"Invalid YAML in {p}: {e}", cause=e, context={"path": str(p)})
    except (ValueError, RecursionError) as e:
        # Oversized integers and pathological nesting.
        raise ConfigParseError(msg=f"Cannot parse config {p}: {e}", cause=e, context={"path": str(p)})

    if not isinstance(data, dict):
        raise ConfigParseError(
            msg=f"Config {p} must contain an object at the top level, got {type(data).__name__}",
            context={"path": str(p)},
        )
    return data


def load_config(
    path: Union[str, Path],
    *,
    action_override: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
) -> ReconciliationConfig:
    doc = load_document(path)
    doc = merge_action_override(doc, action_override)
    cfg = validate_document(doc, source=str(path))
    if logger is not None:
        logger.debug(
            "Loaded config %s: network=%s subnet=%s gateway=%s rules=%d vms=%d",
            path,
            cfg.network.name,
            cfg.network.subnet,
            cfg.network.gateway,
            len(cfg.port_forwarding),
            len(cfg.vms),
        )
    return cfg
