"""Meeting record domain -- canonical schema, remote table model, validation, normalization.

Raw candidates from either source are RawRecord values; only records that
pass validate() and go through normalize() become MeetingRecord instances.
"""
