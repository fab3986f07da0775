"""
Filter configuration and fixed sensor noise.

Process noise is tunable per filter instance. Measurement noise is given by
the sensor manufacturer and lives here as module constants.
"""
from dataclasses import dataclass

# Position sensor noise std [m]
STD_LASPX = 0.15
STD_LASPY = 0.15

# Range sensor noise std: range [m], bearing [rad], range rate [m/s]
STD_RADR = 0.3
STD_RADPHI = 0.03
STD_RADRD = 0.3


@dataclass(frozen=True)
class FilterConfig:
    """
    Configuration of a FusionUKF instance.

    Attributes
    ----------
    std_a : float
        Process noise std of longitudinal acceleration [m/s^2]
    std_yawdd : float
        Process noise std of yaw acceleration [rad/s^2]
    use_position : bool
        Apply position sensor updates (initialisation is always allowed)
    use_range : bool
        Apply range sensor updates (initialisation is always allowed)
    yaw_rate_eps : float
        Below this |yaw_rate| the process model moves in a straight line
    range_eps : float
        Lower bound on the range used as range-rate denominator
    time_scale : float
        Factor converting timestamp differences to seconds (1e-6 for
        microsecond timestamps)
    init_var_v, init_var_yaw, init_var_yaw_rate : float
        Initial variances of the unobserved state components
    """
    std_a: float = 3.0
    std_yawdd: float = 1.0
    use_position: bool = True
    use_range: bool = True
    yaw_rate_eps: float = 1e-3
    range_eps: float = 1e-6
    time_scale: float = 1.0
    init_var_v: float = 1.0
    init_var_yaw: float = 1.0
    init_var_yaw_rate: float = 1.0

    def __post_init__(self):
        for name in ('std_a', 'std_yawdd', 'yaw_rate_eps', 'range_eps', 'time_scale',
                     'init_var_v', 'init_var_yaw', 'init_var_yaw_rate'):
            value = getattr(self, name)
            if not value > 0:
                raise ValueError(f"{name} must be positive, got {value}")

    @property
    def position_noise_std(self):
        return (STD_LASPX, STD_LASPY)

    @property
    def range_noise_std(self):
        return (STD_RADR, STD_RADPHI, STD_RADRD)
