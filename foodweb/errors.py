class FoodWebError(Exception):
    """Base error for the food web model.

    `sweep_index` and `step` are filled in by the sweep driver when the error
    happens inside a run, so callers can report where it stopped.
    """

    def __init__(self, message: str, *, sweep_index=None, step=None):
        super().__init__(message)
        self.message = message
        self.sweep_index = sweep_index
        self.step = step

    def __str__(self):
        where = []
        if self.sweep_index is not None:
            where.append(f"sweep={self.sweep_index}")
        if self.step is not None:
            where.append(f"step={self.step}")
        if where:
            return f"{self.message} ({', '.join(where)})"
        return self.message


class InvalidConfiguration(FoodWebError, ValueError):
    pass


class OutputBufferOverflow(FoodWebError, IndexError):
    pass


class NumericalDivergence(FoodWebError, ArithmeticError):
    pass
