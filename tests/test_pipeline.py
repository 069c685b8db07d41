"""
Tests for the Preprocessing Pipeline (end to end)
"""

import json

import numpy as np
import pytest
from dfo_prep import (
    HUGE_F,
    InvalidNonlinearConstraint,
    InvalidObjective,
    InvalidProblem,
    InvalidProblemType,
    InvalidX0,
    PreprocessingWarning,
    ProblemType,
    RecoverableOptionWarning,
    Solver,
    UnexpectedError,
    canonical_dumps,
    prepare,
    prepare_problem,
)


def sphere(x):
    return float(np.sum(np.asarray(x) ** 2))


def unit_ball(x):
    return np.array([np.dot(x, x) - 1.0]), np.zeros(0)


class TestExamples:
    """The reference scenarios."""

    def test_maxfun_raised_then_cobyla(self):
        """maxfun = n+1 with n=5 is raised to n+2 and cobyla is selected."""
        with pytest.warns(RecoverableOptionWarning, match="maxfun"):
            problem, options, info = prepare(sphere, np.ones(5), options={'maxfun': 6})
        assert options.maxfun == 7
        assert options.solver is Solver.COBYLA
        assert info.solver == "cobyla"
        assert [w.warning_id for w in info.warnings] == ["pdfo:InvalidMaxfun"]

    def test_nan_objective(self):
        """A NaN objective value reaches the solver as HUGE_F."""
        problem, _, _ = prepare(lambda x: np.nan, np.zeros(2))
        assert problem.objective(np.zeros(2)) == HUGE_F

    def test_infeasible_zero_row(self):
        """Aineq=[[0,0]], bineq=[-1] is flagged, kept, and makes the problem infeasible."""
        problem, _, info = prepare(sphere, np.zeros(2), Aineq=[[0.0, 0.0]], bineq=[-1.0])
        assert info.infeasible
        assert info.facts.infeasible_lineq.tolist() == [True]
        assert problem.Aineq.shape == (1, 2)
        assert not info.reduced
        assert not info.scaled

    def test_fixed_variable_reduced(self):
        """n=3, lb=[0,0,0], ub=[0,5,10]: variable 0 is fixed at 0 and removed."""
        problem, options, info = prepare(
            sphere, np.ones(3), lb=[0, 0, 0], ub=[0, 5, 10]
        )
        assert info.reduced
        assert info.raw_dim == 3
        assert info.refined_dim == 2
        assert info.raw_type == ProblemType.BOUND_CONSTRAINED
        np.testing.assert_array_equal(info.facts.fixed_value, [0.0])
        np.testing.assert_array_equal(problem.x0, [1.0, 1.0])
        assert problem.objective(np.array([1.0, 2.0])) == 5.0
        np.testing.assert_array_equal(info.restore_x([2.0, 3.0]), [0.0, 2.0, 3.0])
        assert options.solver is Solver.BOBYQA
        assert options.npt == 5

    def test_fixed_variable_drops_column(self):
        """The fixed column leaves Aineq and bineq absorbs it."""
        problem, _, info = prepare(
            sphere, [0.0, 1.0, 1.0], Aineq=[[2.0, 1.0, 1.0]], bineq=[10.0],
            lb=[3.0, 0.0, 0.0], ub=[3.0, 5.0, 10.0],
        )
        assert info.reduced
        np.testing.assert_array_equal(problem.Aineq, [[1.0, 1.0]])
        np.testing.assert_array_equal(problem.bineq, [4.0])


class TestDegenerateProblems:
    """Test infeasible and fully fixed problems."""

    def test_all_fixed(self):
        """When every variable is fixed, the fixed point is the answer."""
        problem, _, info = prepare(sphere, np.zeros(2), lb=[1.0, 2.0], ub=[1.0, 2.0])
        assert info.nofreex
        assert info.constrv_fixedx == 0.0
        assert not info.reduced
        assert not info.scaled
        np.testing.assert_array_equal(info.restore_x([9.0, 9.0]), [1.0, 2.0])

    @pytest.mark.parametrize("invoker, options", [
        ("bobyqa", None),
        ("pdfo", {'solver': 'bobyqa'}),
    ])
    def test_all_fixed_bobyqa(self, invoker, options):
        """bobyqa on a fully fixed problem gets radii floored at eps."""
        eps = np.finfo(float).eps
        _, resolved, info = prepare(sphere, [1.0, 2.0], lb=[1.0, 2.0], ub=[1.0, 2.0],
                                    options=options, invoker=invoker)
        assert info.nofreex
        assert info.solver == "bobyqa"
        assert resolved.rhobeg >= eps
        assert eps <= resolved.rhoend <= resolved.rhobeg

    def test_infeasible_with_fixed_bobyqa(self):
        """An infeasible bound next to a fixed one does not break bobyqa options."""
        eps = np.finfo(float).eps
        _, resolved, info = prepare(sphere, [1.0, 0.0], lb=[1.0, 0.0], ub=[1.0, -1.0],
                                    invoker="bobyqa")
        assert info.infeasible
        assert not info.reduced
        assert resolved.rhobeg >= eps
        assert resolved.rhoend >= eps

    def test_all_fixed_violation(self):
        """The violation of the fixed point is recorded."""
        _, _, info = prepare(sphere, np.zeros(1), Aineq=[[1.0]], bineq=[0.0], lb=[1.0], ub=[1.0])
        assert info.nofreex
        assert info.constrv_fixedx == pytest.approx(1.0)

    def test_all_fixed_nonlinear_violation(self):
        """Nonlinear constraints count in the fixed-point violation."""
        _, _, info = prepare(sphere, np.zeros(2), lb=[1.0, 1.0], ub=[1.0, 1.0], nonlcon=unit_ball)
        assert info.constrv_fixedx == pytest.approx(1.0)

    def test_trivial_rows_removed(self):
        """Always-satisfied rows disappear and can demote the type."""
        problem, _, info = prepare(sphere, np.zeros(2), Aineq=[[1.0, 0.0]], bineq=[np.inf])
        assert info.facts.trivial_lineq.tolist() == [True]
        assert problem.Aineq.shape == (0, 0)
        assert info.raw_type == ProblemType.UNCONSTRAINED


class TestProjectionAndScaling:
    """Test x0 revision and scaling inside the pipeline."""

    def test_x0_clipped(self):
        """x0 outside the bounds is revised with a warning."""
        with pytest.warns(PreprocessingWarning, match="x0 is revised"):
            problem, _, info = prepare(sphere, [2.0, -1.0], lb=[0.0, 0.0], ub=[1.0, 1.0])
        np.testing.assert_array_equal(problem.x0, [1.0, 0.0])
        assert "pdfo:ReviseX0" in [w.warning_id for w in info.warnings]

    def test_x0_projected_onto_halfspace(self):
        """Linearly-constrained x0 is projected and lincoa is selected."""
        problem, options, _ = prepare(sphere, [1.0, 1.0], Aineq=[[1.0, 1.0]], bineq=[1.0])
        np.testing.assert_allclose(problem.x0, [0.5, 0.5], atol=1e-5)
        assert options.solver is Solver.LINCOA

    def test_nonlinear_not_projected(self):
        """x0 is never projected when nonlinear constraints are present."""
        problem, options, info = prepare(sphere, [5.0, 0.0], lb=[0.0, 0.0], ub=[1.0, 1.0],
                                         nonlcon=unit_ball)
        np.testing.assert_array_equal(problem.x0, [5.0, 0.0])
        assert options.solver is Solver.COBYLA
        assert "pdfo:ReviseX0" not in [w.warning_id for w in info.warnings]

    def test_substantial_scaling_resets_radii(self):
        """max/min scaling factor > 4 resets rhobeg to 1 and rescales rhoend."""
        problem, options, info = prepare(
            sphere, [1.0, 0.0], lb=[0.0, -10.0], ub=[4.0, 10.0],
            options={'scale': True, 'rhobeg': 0.5, 'rhoend': 1e-4},
        )
        assert info.scaled
        np.testing.assert_array_equal(info.scaling_factor, [2.0, 10.0])
        np.testing.assert_array_equal(info.shift, [2.0, 0.0])
        np.testing.assert_allclose(problem.x0, [-0.5, 0.0])
        assert options.rhobeg == 1.0
        assert options.rhoend == pytest.approx(2e-4)
        assert options.solver is Solver.BOBYQA
        assert [w.warning_id for w in info.warnings] == ["pdfo:ProblemScaled"]
        np.testing.assert_allclose(info.restore_x(problem.x0), [1.0, 0.0])

    def test_mild_scaling_keeps_radii(self):
        """Scaling with ratio <= 4 leaves rhobeg and rhoend alone."""
        _, options, info = prepare(
            sphere, [1.0, 1.0], lb=[0.0, 0.0], ub=[2.0, 4.0],
            options={'scale': True, 'rhobeg': 0.5, 'rhoend': 1e-4},
        )
        assert info.scaled
        assert options.rhobeg == 0.5
        assert options.rhoend == 1e-4

    def test_identity_scaling_is_silent(self):
        """Unbounded variables are only shifted; no scaling warning."""
        problem, _, info = prepare(sphere, [3.0, 4.0], options={'scale': True})
        assert info.scaled
        np.testing.assert_array_equal(problem.x0, [0.0, 0.0])
        assert "pdfo:ProblemScaled" not in [w.warning_id for w in info.warnings]
        np.testing.assert_array_equal(info.restore_x([0.0, 0.0]), [3.0, 4.0])
        assert problem.objective(np.zeros(2)) == 25.0

    def test_reduce_then_scale_round_trip(self):
        """canonical_point and restore_x are inverse on the free variables."""
        _, _, info = prepare(
            sphere, [1.0, 0.5, 3.0], lb=[1.0, 0.0, -np.inf], ub=[1.0, 2.0, np.inf],
            options={'scale': True},
        )
        assert info.reduced and info.scaled
        x = np.array([1.0, 1.5, -7.0])
        np.testing.assert_allclose(info.restore_x(info.canonical_point(x)), x)


class TestInvokers:
    """Test specific-solver invokers."""

    def test_incompatible_invoker(self):
        """newuoa cannot take a bound-constrained problem."""
        with pytest.raises(InvalidProblemType) as exc:
            prepare(sphere, np.zeros(2), lb=[0.0, 0.0], invoker="newuoa")
        assert exc.value.identifier == "newuoa:InvalidProb"
        assert "bound constrained problem received; newuoa cannot solve it" in str(exc.value)

    def test_reduction_demotes_type(self):
        """Fixing the only bounded variable leaves an unconstrained problem."""
        _, options, info = prepare(
            sphere, np.zeros(2), lb=[1.0, -np.inf], ub=[1.0, np.inf], invoker="newuoa"
        )
        assert info.raw_type == ProblemType.BOUND_CONSTRAINED
        assert info.refined_type == ProblemType.UNCONSTRAINED
        assert options.solver is Solver.NEWUOA
        assert info.solver == "newuoa"

    def test_unknown_invoker(self):
        """Invokers outside the closed set are internal errors."""
        with pytest.raises(UnexpectedError):
            prepare(sphere, np.zeros(2), invoker="fminsearch")


class TestValidationErrors:
    """Test user-facing input errors."""

    def test_invalid_x0(self):
        """x0 must be a non-empty real vector."""
        with pytest.raises(InvalidX0):
            prepare(sphere, [])
        with pytest.raises(InvalidX0):
            prepare(sphere, np.ones((2, 2)))

    def test_invalid_objective(self):
        """The objective must be callable."""
        with pytest.raises(InvalidObjective):
            prepare("sphere", np.zeros(2))

    def test_invalid_nonlcon(self):
        """nonlcon must be callable."""
        with pytest.raises(InvalidNonlinearConstraint):
            prepare(sphere, np.zeros(2), nonlcon=5)

    def test_errors_are_value_errors(self):
        """User errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            prepare(sphere, np.zeros(2), lb=[0.0])

    def test_no_objective(self):
        """A missing objective becomes the zero function with a warning."""
        with pytest.warns(PreprocessingWarning, match="no objective"):
            problem, _, info = prepare(None, np.zeros(2))
        assert problem.objective(np.ones(2)) == 0.0
        assert info.warnings[0].warning_id == "pdfo:NoObjective"


class TestProblemMapping:
    """Test problems given as a single mapping."""

    def test_basic(self):
        """A mapping is decoded and prepared."""
        problem, options, info = prepare_problem({'objective': sphere, 'x0': [1.0, 2.0]})
        assert problem.n == 2
        assert info.solver is not None

    def test_not_a_mapping(self):
        """The problem must be a mapping."""
        with pytest.raises(InvalidProblem):
            prepare_problem([sphere, [1.0]])

    def test_missing_x0(self):
        """x0 is obligatory; an empty x0 counts as missing."""
        with pytest.raises(InvalidProblem, match="x0"):
            prepare_problem({'objective': sphere})
        with pytest.raises(InvalidProblem):
            prepare_problem({'objective': sphere, 'x0': []})

    def test_no_objective_and_unknown_field(self):
        """Missing objective and unknown fields are reported in order."""
        problem, _, info = prepare_problem({'x0': [0.0, 0.0], 'colour': 'red'})
        assert [w.warning_id for w in info.warnings] == ["pdfo:NoObjective", "pdfo:UnknownProbField"]
        assert info.warnings[1].message == "pdfo: problem with an unknown field colour; it is ignored."
        assert problem.objective(np.ones(2)) == 0.0

    def test_top_level_solver_wins(self):
        """A top-level solver overrides options['solver']."""
        _, options, info = prepare_problem({
            'objective': sphere,
            'x0': np.zeros(3),
            'options': {'solver': 'newuoa'},
            'solver': 'uobyqa',
        })
        assert options.solver is Solver.UOBYQA
        assert len(info.warnings) == 0

    def test_mapping_with_invoker(self):
        """A specific invoker applies to mappings too."""
        with pytest.raises(InvalidProblemType):
            prepare_problem({'objective': sphere, 'x0': [0.0], 'Aeq': [[1.0]], 'beq': [0.0]},
                            invoker="bobyqa")


class TestProblemInfo:
    """Test the transformation record."""

    def test_raw_data_only_in_debug(self):
        """raw_data is kept in debug mode only; refined_data always."""
        _, _, info = prepare(sphere, np.zeros(2))
        assert info.raw_data is None
        assert set(info.refined_data) == {'problem', 'options'}

        _, _, info = prepare(sphere, np.zeros(2), options={'debug': True})
        assert info.raw_data['x0'].tolist() == [0.0, 0.0]
        assert info.raw_data['objective'] is sphere

    def test_canonical_form_is_json(self):
        """to_canonical() serializes to strict JSON."""
        _, _, info = prepare(sphere, [1.0, 2.0], lb=[0.0, -np.inf], ub=[3.0, np.inf],
                             options={'debug': True, 'scale': True})
        text = canonical_dumps(info.to_canonical())
        data = json.loads(text)
        assert data['invoker'] == "pdfo"
        assert data['refined_type'] == "bound-constrained"
        assert data['raw_data']['objective'] == "sphere"

    def test_fingerprint_deterministic(self):
        """Identical inputs give identical fingerprints."""
        _, _, a = prepare(sphere, [1.0, 2.0], Aineq=[[1.0, 1.0]], bineq=[5.0])
        _, _, b = prepare(lambda x: 0.0, [1.0, 2.0], Aineq=[[1.0, 1.0]], bineq=[5.0])
        assert a.fingerprint() == b.fingerprint()
        _, _, c = prepare(sphere, [1.0, 2.0], Aineq=[[1.0, 1.0]], bineq=[6.0])
        assert a.fingerprint() != c.fingerprint()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
