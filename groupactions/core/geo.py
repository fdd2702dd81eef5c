"""
Great-circle distances for the location filter.
"""

from math import atan2, cos, radians, sin, sqrt

EARTH_RADIUS_MILES = 3958.8


def distance_in_miles(
    latitude_a: float, longitude_a: float, latitude_b: float, longitude_b: float
) -> float:
    """
    Haversine distance, in statute miles, between two points given in
    degrees.
    """
    delta_latitude = radians(latitude_b - latitude_a)
    delta_longitude = radians(longitude_b - longitude_a)

    a = (
        sin(delta_latitude / 2) ** 2
        + cos(radians(latitude_a))
        * cos(radians(latitude_b))
        * sin(delta_longitude / 2) ** 2
    )

    return EARTH_RADIUS_MILES * 2 * atan2(sqrt(a), sqrt(1 - a))


def within_distance(
    latitude_a: float,
    longitude_a: float,
    latitude_b: float,
    longitude_b: float,
    distance: float,
) -> bool:
    """
    Whether the two points are at most `distance` miles apart (inclusive).
    """
    return (
        distance_in_miles(latitude_a, longitude_a, latitude_b, longitude_b)
        <= distance
    )
