# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Tariff Sync: time-versioned warehouse box-rate history and publishing."""

from __future__ import annotations

__version__ = "0.1.0"
