"""
recoannie: decoding and pulse reconstruction for the ANNIE phase I VME DAQ.

- recoannie.core: raw / reconstructed readout data model
- recoannie.analysis: baseline, pulse finding, event selection
- recoannie.io: sequential readout sources
"""

__version__ = "0.1.0"
