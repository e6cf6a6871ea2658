"""
errors.py
==============================

Fehlerklassen des Meta-Resolvers.

Jede Ausnahme trägt einen HTTP-Statuscode, den die Exception-Handler in
`app/main.py` unverändert in die Antwort übernehmen
(`{"code": ..., "message": ...}`).

Übersicht:
  • UnsupportedTypeError   – 406, Typ ohne freigegebenen Provider
  • ConflictError          – 409, Provider-Typ existiert bereits
  • NotFoundError          – 404, Provider oder Aktion unbekannt
  • PatternSyntaxError     – 400, Regel lässt sich nicht kompilieren
  • PaginationError        – 400, ungültige Seite/Seitengröße
  • PatternExecutionError  – 500, Regel bricht bei der Auswertung ab
"""


class PidmrError(Exception):
    """Basisklasse aller fachlichen Fehler."""

    code = 500

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class UnsupportedTypeError(PidmrError):
    code = 406


class ConflictError(PidmrError):
    code = 409


class NotFoundError(PidmrError):
    code = 404


class PatternSyntaxError(PidmrError):
    """Eine Regel ist syntaktisch fehlerhaft (Registrierungszeitpunkt)."""

    code = 400

    def __init__(self, rule: str, reason: str):
        super().__init__(f"Invalid regular expression {rule!r}: {reason}")
        self.rule = rule
        self.reason = reason


class PaginationError(PidmrError):
    code = 400


class PatternExecutionError(PidmrError):
    """
    Eine bereits registrierte Regel lässt sich nicht auswerten.
    Deutet auf einen Fehler bei der Registrierung hin und wird nie
    als INVALID-Ergebnis verschluckt.
    """

    code = 500

    def __init__(self, rule: str, reason: str):
        super().__init__(f"Rule {rule!r} failed during evaluation: {reason}")
        self.rule = rule
        self.reason = reason
