"""Slowbeam worker: scheduled translation sync and generation CLI."""
