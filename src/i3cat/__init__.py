"""Concatenate the i3bar output of several commands into one bar.

Subpackages: bar, infra, protocol
"""
