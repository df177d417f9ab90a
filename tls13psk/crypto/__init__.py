"""
Cryptographic primitives for the PSK binder

Provides:
- HKDF-Extract / HKDF-Expand-Label
- Hash algorithm selection per cipher suite
"""

from .hkdf import cipher_suite_hash, hash_empty, hkdf_extract, hkdf_expand_label
