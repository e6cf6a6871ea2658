"""
pattern_compiler.py
==============================

Kompilierung von Provider-Regeln
--------------------------------

Übersetzt den Text einer Regel (regulärer Ausdruck) in ein wiederverwendbares
Matcher-Objekt mit zwei Prädikaten:

1) full_match()     – die gesamte Eingabe entspricht dem Muster
2) prefix_viable()  – die Eingabe ist (noch) kein Treffer, aber ein gültiger
                      Anfang eines Strings, den das Muster akzeptieren würde

Für (2) wird das `regex`-Modul verwendet: `fullmatch(..., partial=True)`
liefert einen Teiltreffer, wenn das Ende der Eingabe erreicht wurde, ohne
dass das Muster die Eingabe verworfen hat.
"""

from __future__ import annotations

import regex

from app.core.errors import PatternExecutionError, PatternSyntaxError


class CompiledPattern:
    """Unveränderlicher, kompilierter Regel-Matcher."""

    __slots__ = ("source", "_pattern", "_timeout")

    def __init__(self, source: str, pattern: "regex.Pattern", timeout: float | None = None):
        self.source = source
        self._pattern = pattern
        self._timeout = timeout

    def __repr__(self) -> str:
        return f"CompiledPattern({self.source!r})"

    def full_match(self, value: str) -> bool:
        return self._run(value, partial=False) is not None

    def prefix_viable(self, value: str) -> bool:
        """
        True, wenn `value` kein vollständiger Treffer ist, aber um weitere
        Zeichen ergänzt zu einem Treffer werden könnte.
        """
        m = self._run(value, partial=True)
        if m is None or not m.partial:
            return False
        return not self.full_match(value)

    def _run(self, value: str, partial: bool):
        try:
            return self._pattern.fullmatch(value, partial=partial, timeout=self._timeout)
        except TimeoutError as e:
            raise PatternExecutionError(self.source, f"timeout after {self._timeout}s") from e
        except Exception as e:
            raise PatternExecutionError(self.source, f"{type(e).__name__}: {e}") from e


def compile_rule(text: str, timeout: float | None = None) -> CompiledPattern:
    """
    Kompiliert eine Regel. Syntaktisch fehlerhafte oder leere Regeln
    führen zu PatternSyntaxError. Regeln aus Leerzeichen sind gültig
    (sie passen auf genau diese Leerzeichen).
    """
    if not text:
        raise PatternSyntaxError("", "empty rule")

    try:
        compiled = regex.compile(text)
    except regex.error as e:
        raise PatternSyntaxError(text, str(e)) from e

    return CompiledPattern(text, compiled, timeout)
