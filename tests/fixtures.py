from wsjf_viz.schema import WorkItem, cod_triple, size_triple


def make_item(item_id, job_size_parts=(1, 1, 1), cod_parts=(1, 1, 1), title=None, color=None):
    return WorkItem(
        item_id=item_id,
        title=title if title is not None else item_id,
        size=size_triple(*job_size_parts),
        cost_of_delay=cod_triple(*cod_parts),
        color=color,
    )


def worked_example():
    """A(job size 2, CoD 10) followed by B(job size 3, CoD 5)."""
    a = make_item("A", (1, 0.5, 0.5), (5, 3, 2), title="Alpha")
    b = make_item("B", (1, 1, 1), (2, 2, 1), title="Beta")
    return a, b
