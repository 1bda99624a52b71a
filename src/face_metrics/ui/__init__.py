"""
User interface layer: command-line application and configuration files.
"""
