"""Exception types raised by the approximation pipeline."""


class VoronoiMeshError(Exception):
    """Base class for all pipeline errors."""


class PoolExhausted(VoronoiMeshError):
    """The candidate pool ran dry before an unused point was found.

    This is terminal for the evolve call in progress. The pool is never
    replenished, so retrying will fail again.
    """


class TessellationFailure(VoronoiMeshError):
    """The Voronoi diagram could not be built from the current sites."""


class HullDegenerate(VoronoiMeshError):
    """Convex hull triangulation failed on a (near) planar lifted point set."""


class WorkerPoolSaturated(VoronoiMeshError):
    """The worker pool's pending-task queue is full."""
