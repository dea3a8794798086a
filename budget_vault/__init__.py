"""
Budget Vault - Source Package

A personal budget tracker that keeps its data on the device,
locked behind a PIN.

DESIGN PRINCIPLES:
1. The raw PIN is never stored
2. Encryption keys live only in memory, only while unlocked
3. Lock eagerly, never trust resumed focus
4. Unreadable ciphertext is reported, never guessed at
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Budget Vault Team"
