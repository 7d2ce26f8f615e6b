"""Psychomotor vigilance task: trials, engine and metrics."""