from enum import IntEnum


class Stage(IntEnum):
    """Computation stages of a model, in realization order.

    A stage can only be realized once every earlier stage has been realized.
    Outputs declare the lowest stage their value depends on, so reading an
    output requires the evaluation context to be at or past that stage.

    Example:
        >>> Stage.VELOCITY < Stage.REPORT
        True
    """

    INSTANTIATED = 0
    POSITION = 1
    VELOCITY = 2
    DYNAMICS = 3
    ACCELERATION = 4
    REPORT = 5

    def next(self) -> "Stage":
        if self is Stage.REPORT:
            raise ValueError("Stage.REPORT is the last stage")
        return Stage(self + 1)

    def prev(self) -> "Stage":
        if self is Stage.INSTANTIATED:
            raise ValueError("Stage.INSTANTIATED is the first stage")
        return Stage(self - 1)
