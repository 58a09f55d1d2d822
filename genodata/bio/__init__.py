"""Sequence file codecs and the collaborators of the bundled formats."""

from genodata.bio.reads import FastqReader, FastqWriter, ReadSequence, TfqReader, TfqWriter

__all__ = ["FastqReader", "FastqWriter", "ReadSequence", "TfqReader", "TfqWriter"]
