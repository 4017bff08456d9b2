from typing import List


def calculate_chi_square(
    observed_values: List[float], expected_values: List[float]
) -> float:
    """
    Calculate the chi-square statistic given lists of observed and expected values.

    :param observed_values: A list of observed values
    :param expected_values: A list of expected values
    :return: The calculated chi-square statistic
    :raises ValueError: If the lists differ in length or an expected value is not positive

    """
    if len(observed_values) != len(expected_values):
        raise ValueError("Observed and expected value lists must have the same length.")
    if any(e <= 0 for e in expected_values):
        raise ValueError("Expected values must all be positive.")

    return sum((o - e) ** 2 / e for o, e in zip(observed_values, expected_values))


def clamp(value: int, lower: int, upper: int) -> int:
    """Clamp ``value`` into the inclusive range [lower, upper]."""
    return max(lower, min(upper, value))
