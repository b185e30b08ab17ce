"""
Shared Kernel

Cross-layer building blocks (error hierarchy).
"""
