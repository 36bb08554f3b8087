"""Order-independent per-vertex tangent space generation for triangle and quad meshes."""

__version__ = "1.0.0"
__all__ = ["generator", "groups", "mesh", "neighbors", "triinfo", "tspace", "vecmath", "welding"]