"""Joint PVT control, low-pass filtering, rotation math, a data bus and URDF inverse kinematics."""

__version__ = "0.1.0"