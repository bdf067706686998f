"""Progress aggregation for project targets."""

from project_tracker.models.project import Project


def compute_progress(completed: int, total: int) -> int:
    """Percentage of completed targets, rounded half up; 0 without targets."""
    if total <= 0:
        return 0
    # Integer form of floor(100 * completed / total + 0.5)
    return (200 * completed + total) // (2 * total)


def recompute(project: Project) -> int:
    """Recompute ``project.progress`` from its current targets."""
    project.progress = compute_progress(project.completed_target_count, len(project.targets))
    return project.progress
