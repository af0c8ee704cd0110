from typing import Any, Dict, List


DEFAULT_OVERALL_GRAPH_API_URL = (
    "https://api.github.com/repos/ewang2002/UCSDHistEnrollData/contents/{term}/plot_overall"
)


class EnrollDataSettings:
    """Typed accessors for the ``enroll_data`` configuration section.

    Mirrors the minimal explicit API of the other settings helpers: ``get``,
    ``as_dict`` and one property per supported key.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return self.data

    @property
    def terms(self) -> List[str]:
        """Terms offered as choices by ``/getoverall`` (e.g. ``SP22``)."""
        value = self.data.get("terms", [])
        if not isinstance(value, list):
            return []
        return [str(term) for term in value]

    @property
    def cached_data_term(self) -> str:
        return str(self.data.get("cached_data_term") or "")

    @property
    def cached_data_path(self) -> str | None:
        val = self.data.get("cached_data_path")
        return str(val) if val else None

    @property
    def overall_graph_api_url(self) -> str:
        """URL template of the graph listing; ``{term}`` is substituted."""
        return str(self.data.get("overall_graph_api_url") or DEFAULT_OVERALL_GRAPH_API_URL)

    @property
    def request_timeout_seconds(self) -> float:
        return float(self.data.get("request_timeout_seconds", 10.0))
