"""Derived views over a cohort's students: filter and group by leergroep."""

from models.student import LEERGROEPEN


def _group_of(student):
    return student["leergroep"] if isinstance(student, dict) else student.leergroep


def filter_by_group(students, group='all'):
    """Students in *group* (1-3), or all of them for ``'all'``. Order is kept."""
    if group == 'all':
        return list(students)
    return [s for s in students if _group_of(s) == group]


def group_students(students):
    """Bucket students into the three fixed leergroepen; empty buckets included."""
    buckets = {group: [] for group in LEERGROEPEN}
    for student in students:
        group = _group_of(student)
        if group in buckets:
            buckets[group].append(student)
    return buckets


def group_counts(students):
    return {group: len(members) for group, members in group_students(students).items()}
