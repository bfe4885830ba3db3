"""School Core package.

Feature modules (audit, ledger, students, attendance, users, ...) each carry a
model, a repository interface with its MySQL implementation, a service layer and
a thin Flask controller.
"""
