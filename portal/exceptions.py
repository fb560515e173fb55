# -*- coding: utf-8 -*-
"""
Errors raised by the dues ledger and the coursework rules.

All of them are recoverable by the caller. The API layer turns them into
JSON responses (see ``main.py``); scripts log them and move on.
"""


class LedgerError(Exception):
    status_code = 400

    def __init__(self, detail):
        super().__init__(detail)
        self.detail = detail


class NotFound(LedgerError):
    status_code = 404


class InvalidAmount(LedgerError):
    status_code = 422


class OwnershipMismatch(LedgerError):
    status_code = 403


class ConcurrentUpdateConflict(LedgerError):
    """The due changed under us between the read and the status write. Retry."""
    status_code = 409


class InvalidGrade(LedgerError):
    status_code = 422


class InvalidSubmission(LedgerError):
    status_code = 422


class AlreadySubmitted(LedgerError):
    status_code = 409
