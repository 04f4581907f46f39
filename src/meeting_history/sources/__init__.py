"""Meeting record sources -- adapter interfaces and their backends.

RemoteMeetingStore (authoritative, PostgreSQL) and LocalMeetingJournal
(transient, Redis) are the two inputs the reconciler merges.
"""
