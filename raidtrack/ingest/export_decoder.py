"""Decode raids from a SavedVariables file in JSON-export or raw Lua mode."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from raidtrack.errors import ExportDecodeError, MappingError
from raidtrack.ingest.difficulty import parse_presets
from raidtrack.ingest.lua_table import decode_pairs, find_blocks, find_table, unescape_lua_string
from raidtrack.ingest.mapping import RaidPayload, payload_from_raw_record


logger = logging.getLogger("raidtrack.ingest.decoder")

MODE_JSON = "json"
MODE_LUA = "lua"


@dataclass(frozen=True)
class ScopedRaid:
    """A raid payload together with the guild it belongs to."""

    scope: str
    payload: RaidPayload


@dataclass
class DecodeResult:
    """Outcome of decoding one file snapshot."""

    mode: str
    raids: List[ScopedRaid] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)


class ExportDecoder:
    """
    Turns SavedVariables text into scoped raid payloads.

    The JSON export under ``export_key`` is preferred. When it is absent or
    unusable the raw ``raidInstances`` table is decoded instead, with
    difficulties derived from ``raidPresets``.
    """

    def __init__(
        self,
        export_key: str,
        default_scope: Optional[str] = None,
        instances_key: str = "raidInstances",
        presets_key: str = "raidPresets",
    ):
        self.export_key = export_key
        self.default_scope = default_scope
        self.instances_key = instances_key
        self.presets_key = presets_key

        key = re.escape(export_key)
        self._export_pattern = re.compile(
            r'(?:(?<![\w])%s|\[\s*"%s"\s*\])\s*=\s*'
            r'(?:"((?:\\.|[^"\\])*)"|\[(=*)\[(.*?)\]\2\](?!\]))'
            % (key, key),
            re.DOTALL,
        )

    def extract_json(self, text: str) -> Any:
        """
        Return the parsed JSON export, or None when the key is absent.

        Raises:
            ExportDecodeError: the export is empty or not valid JSON
        """
        match = self._export_pattern.search(text)
        if not match:
            return None
        if match.group(1) is not None:
            raw = unescape_lua_string(match.group(1))
        else:
            raw = match.group(3) or ""
        if not raw.strip():
            raise ExportDecodeError(f'Export key "{self.export_key}" is empty')
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise ExportDecodeError(f"Export JSON parse failed: {exc}") from exc

    def decode(self, text: str) -> DecodeResult:
        """
        Decode all raids from the file text.

        Raises:
            DecodeError: neither mode produced a usable source
        """
        try:
            data = self.extract_json(text)
        except ExportDecodeError as exc:
            logger.warning("%s; falling back to %s", exc, self.instances_key)
            data = None

        if data is not None:
            result = self._decode_envelopes(data)
            if result is not None:
                logger.debug("Decoded %d raids from JSON export", len(result.raids))
                return result
            logger.warning(
                "Unsupported export shape under %s; falling back to %s",
                self.export_key,
                self.instances_key,
            )

        return self._decode_lua(text)

    def _decode_envelopes(self, data: Any) -> Optional[DecodeResult]:
        if isinstance(data, list):
            envelopes = data
        elif isinstance(data, Mapping) and _is_envelope(data):
            envelopes = [data]
        else:
            return None

        result = DecodeResult(mode=MODE_JSON)
        for index, envelope in enumerate(envelopes):
            ref = f"export[{index}]"
            if not isinstance(envelope, Mapping) or not _is_envelope(envelope):
                result.skipped.append((ref, "expected {scope, raid}"))
                continue
            scope = str(envelope.get("scope") or envelope.get("guildId"))
            try:
                payload = RaidPayload.from_export(envelope["raid"])
            except MappingError as exc:
                result.skipped.append((exc.raid_id or ref, str(exc)))
                logger.warning("Skipping %s: %s", exc.raid_id or ref, exc)
                continue
            result.raids.append(ScopedRaid(scope=scope, payload=payload))
        return result

    def _decode_lua(self, text: str) -> DecodeResult:
        blocks = find_blocks(text, self.instances_key, required=True)
        if not self.default_scope:
            raise ExportDecodeError(
                f"{self.instances_key} found but no default guild is configured"
            )
        presets = parse_presets(text, self.presets_key)

        result = DecodeResult(mode=MODE_LUA)
        for index, (key, body) in enumerate(blocks):
            ref = f"{self.instances_key}[{key if key is not None else index + 1}]"
            fields = decode_pairs(body)
            caps_body = find_table(body, "caps")
            caps = decode_pairs(caps_body) if caps_body is not None else None
            try:
                payload = payload_from_raw_record(fields, presets, caps)
            except MappingError as exc:
                result.skipped.append((exc.raid_id or ref, str(exc)))
                logger.warning("Skipping %s: %s", exc.raid_id or ref, exc)
                continue
            result.raids.append(ScopedRaid(scope=self.default_scope, payload=payload))

        logger.debug(
            "Decoded %d raids from %s (%d presets)",
            len(result.raids),
            self.instances_key,
            len(presets),
        )
        return result


def _is_envelope(data: Mapping) -> bool:
    return bool(data.get("scope") or data.get("guildId")) and "raid" in data
