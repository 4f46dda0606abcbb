"""JSON output of any scheme, tagged with the scheme type."""

import json
from typing import Any

from legitify.formatting import DEFAULT_OUTPUT_INDENT
from legitify.scheme import detect_scheme_type, scheme_types, to_typed


class JsonFormatter:
    """Writes every known scheme as ``{"type": ..., "content": ...}``."""

    def format(self, scheme: Any, failed_only: bool) -> str:
        typed = to_typed(detect_scheme_type(scheme), scheme)
        return json.dumps(typed, indent=len(DEFAULT_OUTPUT_INDENT), ensure_ascii=False)

    def is_scheme_supported(self, scheme_type: Any) -> bool:
        return scheme_type in scheme_types()