"""
Building blocks shared by the feature packages: settings, the store
interface and its backends, error translation, attachments and
best-effort notifications.

Table-specific calls belong in each feature's `repository.py`.
"""
