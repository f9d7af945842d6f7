"""Exceptions raised by tag suggesters."""


class TagSuggestionError(Exception):
    """A suggester could not produce usable tags.

    Raised by the remote suggester on HTTP, timeout, parsing or empty-result
    failures. ``FallbackTagSuggester`` catches it and switches to the local
    heuristic, so it never reaches the matching core.
    """

    def __init__(self, message: str, url: str = None, status_code: int = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
