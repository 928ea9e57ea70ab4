"""
Framework 16 LED Matrix support: wire protocol, serial links and frame sinks
"""
