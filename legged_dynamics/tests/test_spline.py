import numpy as np
import pytest

from legged_dynamics.cartesian_dimensions import Dx
from legged_dynamics.polynomial import SplineDomainError
from legged_dynamics.spline import NodeSpline, PhaseSpline
from legged_dynamics.variable_names import BASE_LIN_NODES
from legged_dynamics.variables import (NodesVariablesAll, NodesVariablesEEForce,
                                       NodesVariablesEEMotion, PhaseDurations)


TIMING = [0.3, 0.25, 0.45]  # stance, swing, stance


def _fd_wrt_variables(spline_value, variable_set, eps=1e-6):
    x0 = variable_set.get_values()
    columns = []
    for i in range(x0.size):
        x = x0.copy()
        x[i] += eps
        variable_set.set_variables(x)
        plus = spline_value()
        x[i] -= 2*eps
        variable_set.set_variables(x)
        minus = spline_value()
        columns.append((plus - minus) / (2*eps))
    variable_set.set_variables(x0)
    return np.column_stack(columns)


@pytest.fixture
def ee_splines(rng):
    durations = PhaseDurations(0, TIMING, True)
    motion = NodesVariablesEEMotion(len(TIMING), True, 0)
    force = NodesVariablesEEForce(len(TIMING), True, 0)
    motion.set_variables(rng.normal(0.0, 0.3, motion.get_rows()))
    force.set_variables(rng.normal(0.0, 20.0, force.get_rows()))
    return PhaseSpline(motion, durations), PhaseSpline(force, durations), durations


def test_base_spline_by_linear_interpolation():
    nodes = NodesVariablesAll(5, 3, BASE_LIN_NODES)
    nodes.set_by_linear_interpolation([0.0, 0.0, 0.3], [1.0, 0.4, 0.3], 2.0)
    spline = NodeSpline(nodes, [0.5] * 4)

    state = spline.get_point(1.25)
    np.testing.assert_allclose(state.p, [0.625, 0.25, 0.3])
    np.testing.assert_allclose(state.v, [0.5, 0.2, 0.0], atol=1e-12)
    np.testing.assert_allclose(state.a, np.zeros(3), atol=1e-12)
    assert spline.get_total_time() == pytest.approx(2.0)


def test_polynomial_count_must_match_durations():
    nodes = NodesVariablesAll(5, 3, BASE_LIN_NODES)
    with pytest.raises(ValueError):
        NodeSpline(nodes, [0.5] * 3)


def test_node_jacobian_has_local_support(rng):
    nodes = NodesVariablesAll(6, 3, BASE_LIN_NODES)
    nodes.set_variables(rng.normal(size=nodes.get_rows()))
    spline = NodeSpline(nodes, [0.2] * 5)

    jac = spline.get_jacobian_wrt_nodes(0.5, Dx.POS)  # third polynomial, nodes 2 and 3

    values_per_node = 2 * 3
    nonzero_columns = np.flatnonzero(np.any(jac != 0.0, axis=0))
    assert nonzero_columns.min() >= 2 * values_per_node
    assert nonzero_columns.max() < 4 * values_per_node


@pytest.mark.parametrize("dxdt", [Dx.POS, Dx.VEL, Dx.ACC])
@pytest.mark.parametrize("t", [0.05, 0.37, 0.5, 0.81])
def test_node_jacobian_matches_finite_differences(ee_splines, dxdt, t):
    for spline in ee_splines[:2]:
        numeric = _fd_wrt_variables(lambda: spline.get_point(t).get_by_index(dxdt),
                                    spline.node_variables)
        np.testing.assert_allclose(spline.get_jacobian_wrt_nodes(t, dxdt), numeric,
                                   rtol=1e-6, atol=1e-6)


def test_foot_does_not_move_in_stance(ee_splines):
    motion, _, _ = ee_splines

    np.testing.assert_allclose(motion.get_point(0.05).p, motion.get_point(0.25).p)
    np.testing.assert_allclose(motion.get_point(0.1).v, np.zeros(3))
    np.testing.assert_allclose(motion.get_point(0.6).p, motion.get_point(0.95).p)


def test_force_is_zero_in_swing(ee_splines):
    _, force, _ = ee_splines

    for t in (0.3, 0.35, 0.42, 0.55):
        np.testing.assert_allclose(force.get_point(t).p, np.zeros(3), atol=1e-12)
    assert np.linalg.norm(force.get_point(0.15).p) > 0.0


@pytest.mark.parametrize("t", [0.12, 0.37, 0.5, 0.73, 1.0])
def test_duration_jacobian_matches_finite_differences(ee_splines, t):
    motion, force, durations = ee_splines

    for spline in (motion, force):
        numeric = _fd_wrt_variables(lambda: spline.get_point(t).p, durations, eps=1e-7)
        np.testing.assert_allclose(spline.get_jacobian_of_pos_wrt_durations(t), numeric,
                                   rtol=1e-5, atol=1e-5)


def test_durations_of_later_phases_do_not_affect_earlier_times(ee_splines):
    motion, force, _ = ee_splines

    # t=0.12 lies in the first phase, the second duration variable starts at 0.3
    for spline in (motion, force):
        jac = spline.get_jacobian_of_pos_wrt_durations(0.12)
        np.testing.assert_array_equal(jac[:, 1], np.zeros(3))


def test_swing_position_depends_on_preceding_durations(ee_splines):
    motion, _, _ = ee_splines

    # first polynomial of the swing phase: shifted by phase 0, stretched by phase 1
    jac = motion.get_jacobian_of_pos_wrt_durations(0.42)
    assert np.any(jac[:, 0] != 0.0)
    assert np.any(jac[:, 1] != 0.0)


def test_last_phase_depends_on_every_duration(ee_splines):
    _, force, durations = ee_splines

    # the last duration is total time minus all others
    jac = force.get_jacobian_of_pos_wrt_durations(0.9)
    assert np.all(np.any(jac != 0.0, axis=0))
    assert durations.get_phase_durations()[-1] == pytest.approx(0.45)


def test_base_spline_has_no_duration_variables():
    nodes = NodesVariablesAll(3, 3, BASE_LIN_NODES)
    spline = NodeSpline(nodes, [0.5, 0.5])
    assert spline.get_jacobian_of_pos_wrt_durations(0.3).shape == (3, 0)


def test_time_outside_spline_raises(ee_splines):
    motion, _, _ = ee_splines

    with pytest.raises(SplineDomainError):
        motion.get_point(1.01)
    with pytest.raises(SplineDomainError):
        motion.get_jacobian_wrt_nodes(-0.1, Dx.POS)
    with pytest.raises(SplineDomainError):
        motion.get_jacobian_of_pos_wrt_durations(2.0)


def test_phase_count_must_match():
    durations = PhaseDurations(0, [0.5, 0.5], True)
    motion = NodesVariablesEEMotion(3, True, 0)
    with pytest.raises(ValueError):
        PhaseSpline(motion, durations)


def test_non_positive_last_phase_raises(ee_splines):
    motion, force, durations = ee_splines

    # last phase = 1.0 - 0.6 - 0.5 < 0
    durations.set_variables([0.6, 0.5])
    for spline in (motion, force):
        with pytest.raises(SplineDomainError):
            spline.get_point(1.0)
        with pytest.raises(SplineDomainError):
            spline.get_jacobian_of_pos_wrt_durations(0.2)


def test_zero_fixed_duration_raises():
    nodes = NodesVariablesAll(3, 3, BASE_LIN_NODES)
    spline = NodeSpline(nodes, [0.5, 0.0])
    with pytest.raises(SplineDomainError):
        spline.get_point(0.25)
