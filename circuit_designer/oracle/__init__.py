"""Generative circuit oracle clients.

An oracle turns a natural-language instruction into a candidate circuit
payload and describes existing circuits.  Its output is untrusted: circuit
payloads always go through ``CircuitValidator`` before they are installed.
"""
