"""
Tests for the Options Resolver
"""

import numpy as np
import pytest
from dfo_prep.core.diagnostics import DiagnosticLog
from dfo_prep.errors import InvalidOptions, RecoverableOptionWarning
from dfo_prep.solver import Invoker, Options, Solver, known_fields, resolve_options


def _resolve(options, invoker=Invoker.PDFO, n=3, lb=None, ub=None):
    log = DiagnosticLog(emit=False)
    lb = np.full(n, -np.inf) if lb is None else np.asarray(lb, dtype=float)
    ub = np.full(n, np.inf) if ub is None else np.asarray(ub, dtype=float)
    return resolve_options(invoker, options, n, lb, ub, log), log


class TestDefaults:
    """Test default option values."""

    def test_pdfo_defaults(self):
        """Without a solver, npt stays unset and maxfun is 500n."""
        opts, log = _resolve(None)
        assert opts.solver is None
        assert opts.npt is None
        assert opts.maxfun == 1500
        assert opts.rhobeg == 1.0
        assert opts.rhoend == 1e-6
        assert opts.ftarget == -np.inf
        assert not opts.classical and not opts.scale and not opts.debug
        assert opts.quiet
        assert len(log) == 0

    @pytest.mark.parametrize("invoker, npt", [
        (Invoker.NEWUOA, 7),
        (Invoker.BOBYQA, 7),
        (Invoker.LINCOA, 7),
        (Invoker.UOBYQA, 10),
        (Invoker.COBYLA, 4),
    ])
    def test_default_npt(self, invoker, npt):
        """Default npt depends on the solver."""
        opts, _ = _resolve({}, invoker=invoker)
        assert opts.npt == npt
        assert opts.solver is invoker.solver

    def test_none_entries_unset(self):
        """Entries set to None count as unset."""
        opts, log = _resolve({'maxfun': None, 'rhobeg': None})
        assert opts.maxfun == 1500
        assert len(log) == 0

    def test_options_instance(self):
        """An Options instance is accepted as input."""
        opts, log = _resolve(Options(maxfun=100, solver=Solver.COBYLA))
        assert opts.maxfun == 100
        assert opts.solver is Solver.COBYLA
        assert len(log) == 0

    def test_invalid_options_type(self):
        """Options must be a mapping."""
        with pytest.raises(InvalidOptions) as exc:
            _resolve([1, 2, 3])
        assert exc.value.identifier == "pdfo:InvalidOptions"


class TestSolverField:
    """Test options.solver handling."""

    def test_known_solver_case_insensitive(self):
        """pdfo accepts a known solver name in any case."""
        opts, log = _resolve({'solver': 'NEWUOA'})
        assert opts.solver is Solver.NEWUOA
        assert opts.npt == 7
        assert len(log) == 0

    def test_unknown_solver(self):
        """An unknown solver is reported and left unset."""
        opts, log = _resolve({'solver': 'simplex'})
        assert opts.solver is None
        assert log.ids == ["pdfo:UnknownSolver"]

    def test_non_string_solver(self):
        """A non-string solver is unknown."""
        opts, log = _resolve({'solver': 3})
        assert opts.solver is None
        assert log.ids == ["pdfo:UnknownSolver"]

    def test_pdfo_solver_silent(self):
        """solver='pdfo' is not a complaint."""
        opts, log = _resolve({'solver': 'pdfo'})
        assert opts.solver is None
        assert len(log) == 0

    def test_specific_invoker_overrides(self):
        """A specific invoker ignores a different requested solver."""
        opts, log = _resolve({'solver': 'cobyla'}, invoker=Invoker.NEWUOA)
        assert opts.solver is Solver.NEWUOA
        assert log.ids == ["newuoa:InvalidSolver"]

    def test_specific_invoker_same_solver(self):
        """Naming the invoker itself is fine."""
        _, log = _resolve({'solver': 'newuoa'}, invoker=Invoker.NEWUOA)
        assert len(log) == 0


class TestUnknownOptions:
    """Test unknown option reporting."""

    def test_single_unknown(self):
        """One unknown option."""
        _, log = _resolve({'tolerance': 1e-3})
        assert log.messages == ["pdfo: unknown option tolerance; it is ignored."]

    def test_several_unknown(self):
        """Several unknown options are listed together, sorted."""
        _, log = _resolve({'zeta': 1, 'alpha': 2})
        assert log.messages == ["pdfo: unknown options alpha, zeta; they are ignored."]

    def test_npt_unknown_without_interpolation_solver(self):
        """npt is only an option for newuoa, bobyqa and lincoa."""
        assert 'npt' not in known_fields(None)
        assert 'npt' not in known_fields(Solver.COBYLA)
        assert 'npt' in known_fields(Solver.LINCOA)
        opts, log = _resolve({'npt': 7})
        assert log.ids == ["pdfo:UnknownOption"]
        assert opts.npt is None


class TestNptAndMaxfun:
    """Test npt and maxfun validation."""

    def test_valid_npt(self):
        """npt within [n+2, (n+1)(n+2)/2] is accepted."""
        opts, log = _resolve({'npt': 9}, invoker=Invoker.NEWUOA)
        assert opts.npt == 9
        assert len(log) == 0

    @pytest.mark.parametrize("npt", [4, 11, 7.5, "7"])
    def test_invalid_npt(self, npt):
        """Out-of-range or non-integer npt falls back to 2n+1."""
        opts, log = _resolve({'npt': npt}, invoker=Invoker.BOBYQA)
        assert opts.npt == 7
        assert log.ids == ["bobyqa:InvalidNpt"]

    def test_maxfun_raised_without_solver(self):
        """maxfun = n+1 with n=5 is raised to n+2."""
        opts, log = _resolve({'maxfun': 6}, n=5)
        assert opts.maxfun == 7
        assert log.ids == ["pdfo:InvalidMaxfun"]
        assert "at least n+2" in log.messages[0]

    def test_maxfun_raised_above_npt(self):
        """With a solver, maxfun <= npt becomes npt+1."""
        opts, log = _resolve({'maxfun': 5}, invoker=Invoker.NEWUOA)
        assert opts.maxfun == 8
        assert log.messages == [
            "newuoa: invalid maxfun; newuoa requires maxfun > npt; it is set to npt+1."
        ]

    def test_maxfun_message_cobyla(self):
        """The message states the solver's own requirement."""
        opts, log = _resolve({'maxfun': 2}, invoker=Invoker.COBYLA)
        assert opts.maxfun == 5
        assert "cobyla requires maxfun > n+1" in log.messages[0]

    @pytest.mark.parametrize("maxfun", [-3, 0, 2.5, "100"])
    def test_invalid_maxfun(self, maxfun):
        """Non-positive or non-integer maxfun falls back to the default."""
        opts, log = _resolve({'maxfun': maxfun})
        assert opts.maxfun == 1500
        assert log.ids == ["pdfo:InvalidMaxfun"]

    def test_default_maxfun_exceeds_npt(self):
        """The default maxfun is at least npt+1."""
        opts, _ = _resolve({}, invoker=Invoker.UOBYQA, n=60)
        assert opts.maxfun >= opts.npt + 1


class TestTrustRegionRadii:
    """Test rhobeg and rhoend validation."""

    def test_invalid_rhobeg(self):
        """A non-positive rhobeg falls back to the default."""
        opts, log = _resolve({'rhobeg': -1.0})
        assert opts.rhobeg == 1.0
        assert log.ids == ["pdfo:InvalidRhobeg"]

    def test_invalid_rhobeg_respects_rhoend(self):
        """The fallback rhobeg is at least the user rhoend."""
        opts, log = _resolve({'rhobeg': -1.0, 'rhoend': 2.0})
        assert opts.rhobeg == 2.0
        assert opts.rhoend == 2.0
        assert log.ids == ["pdfo:InvalidRhobeg"]

    def test_rhoend_above_rhobeg(self):
        """rhoend > rhobeg is rescaled to the default ratio."""
        opts, log = _resolve({'rhobeg': 0.5, 'rhoend': 1.0})
        assert opts.rhobeg == 0.5
        assert opts.rhoend == pytest.approx(5e-7)
        assert log.ids == ["pdfo:InvalidRhoend"]

    def test_radii_floored_at_eps(self):
        """Tiny radii are raised to machine epsilon."""
        opts, _ = _resolve({'rhobeg': 1e-30, 'rhoend': 1e-40})
        assert opts.rhobeg == np.finfo(float).eps
        assert opts.rhoend == np.finfo(float).eps

    def test_bobyqa_default_rhobeg(self):
        """bobyqa defaults rhobeg to min(1, min(ub-lb)/2) and scales rhoend."""
        opts, log = _resolve({}, invoker=Invoker.BOBYQA, n=2, lb=[0, 0], ub=[1, 4])
        assert opts.rhobeg == 0.5
        assert opts.rhoend == pytest.approx(5e-7)
        assert len(log) == 0

    def test_bobyqa_rhoend_kept_when_scaling(self):
        """With scaling ahead, the default rhoend is not rescaled."""
        opts, _ = _resolve({'scale': True}, invoker=Invoker.BOBYQA, n=2, lb=[0, 0], ub=[1, 4])
        assert opts.rhobeg == 0.5
        assert opts.rhoend == pytest.approx(1e-6)

    def test_bobyqa_rhobeg_clamped(self):
        """bobyqa clamps rhobeg to min(ub-lb)/2."""
        opts, log = _resolve({'rhobeg': 2.0}, invoker=Invoker.BOBYQA, n=2, lb=[0, 0], ub=[1, 4])
        assert opts.rhobeg == 0.5
        assert log.ids == ["bobyqa:InvalidRhobeg"]
        assert "min(ub-lb)/2" in log.messages[0]

    def test_bobyqa_zero_width_bounds(self):
        """Zero-width bounds under bobyqa floor both radii at eps."""
        eps = np.finfo(float).eps
        for options, invoker in [({}, Invoker.BOBYQA), ({'solver': 'bobyqa'}, Invoker.PDFO),
                                 ({'scale': True}, Invoker.BOBYQA)]:
            opts, log = _resolve(options, invoker=invoker, n=2, lb=[1.0, 2.0], ub=[1.0, 2.0])
            assert opts.solver is Solver.BOBYQA
            assert opts.rhobeg == eps
            assert opts.rhoend == eps
            assert len(log) == 0

    def test_options_instance_default_value_counts_as_set(self):
        """Options(rhobeg=1.0) is checked like {'rhobeg': 1.0}."""
        lb, ub = [0.0, 0.0], [1.0, 4.0]
        from_instance, log_instance = _resolve(
            Options(rhobeg=1.0), invoker=Invoker.BOBYQA, n=2, lb=lb, ub=ub
        )
        from_mapping, log_mapping = _resolve(
            {'rhobeg': 1.0}, invoker=Invoker.BOBYQA, n=2, lb=lb, ub=ub
        )
        assert from_instance == from_mapping
        assert from_instance.rhobeg == 0.5
        assert log_instance.ids == log_mapping.ids == ["bobyqa:InvalidRhobeg"]


class TestFlags:
    """Test ftarget and the logical flags."""

    def test_invalid_ftarget(self):
        """Non-real ftarget falls back to -inf."""
        opts, log = _resolve({'ftarget': 'low'})
        assert opts.ftarget == -np.inf
        assert log.ids == ["pdfo:InvalidFtarget"]

    def test_valid_ftarget(self):
        """A real ftarget is accepted."""
        opts, _ = _resolve({'ftarget': 1e-8})
        assert opts.ftarget == 1e-8

    @pytest.mark.parametrize("name, kind", [
        ('classical', "InvalidClassicalFlag"),
        ('scale', "InvalidScaleFlag"),
        ('quiet', "InvalidQuietFlag"),
        ('debug', "InvalidDebugflag"),
        ('chkfunval', "InvalidChkfunval"),
    ])
    def test_invalid_flag(self, name, kind):
        """Flags must be true/false or 0/1."""
        _, log = _resolve({name: 2})
        assert log.ids == [f"pdfo:{kind}"]

    def test_numeric_flag_accepted(self):
        """0 and 1 are valid flags."""
        opts, log = _resolve({'scale': 1, 'quiet': 0})
        assert opts.scale is True
        assert opts.quiet is False
        assert len(log) == 0

    def test_classical_and_debug_modes(self):
        """Classical and debug modes are announced."""
        opts, log = _resolve({'classical': True, 'debug': True})
        assert opts.classical and opts.debug
        assert log.ids == ["pdfo:Classical", "pdfo:Debug"]

    def test_chkfunval_requires_debug(self):
        """chkfunval without debug is switched off."""
        opts, log = _resolve({'chkfunval': True})
        assert opts.chkfunval is False
        assert log.ids == ["pdfo:InvalidChkfunval"]

    def test_chkfunval_with_debug(self):
        """chkfunval with debug is announced; cobyla also checks constraints."""
        opts, log = _resolve({'chkfunval': True, 'debug': True}, invoker=Invoker.COBYLA)
        assert opts.chkfunval is True
        assert log.ids == ["cobyla:Debug", "cobyla:Chkfunval"]
        assert "con(x)" in log.messages[-1]

        _, log = _resolve({'chkfunval': True, 'debug': True}, invoker=Invoker.NEWUOA)
        assert "con(x)" not in log.messages[-1]


class TestDiagnostics:
    """Test how corrections are reported."""

    def test_warning_order(self):
        """Diagnostics follow the order of resolution."""
        _, log = _resolve({'rhobeg': -1, 'maxfun': -1, 'foo': 1})
        assert log.ids == ["pdfo:UnknownOption", "pdfo:InvalidMaxfun", "pdfo:InvalidRhobeg"]

    def test_recoverable_warning_issued(self):
        """Corrections are issued as RecoverableOptionWarning."""
        log = DiagnosticLog()
        with pytest.warns(RecoverableOptionWarning, match="invalid maxfun"):
            resolve_options(Invoker.PDFO, {'maxfun': -1}, 2,
                            np.full(2, -np.inf), np.full(2, np.inf), log)
        assert log.entries[0].category is RecoverableOptionWarning


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
