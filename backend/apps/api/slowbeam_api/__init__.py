"""Slowbeam API: post feed, visitor counters and translation status."""
