# tests/test_sparse_system.py
from types import SimpleNamespace

import numpy as np
import pytest
import scipy.sparse as sp

from lpnsim_core.assembly import (
    SparseSystem,
    SparseWriteError,
    TripletContributions,
    TripletMatrix,
)


def fake_block(name, F=0, E=0, D=0, eqns=(), params=()):
    return SimpleNamespace(
        name=name,
        num_triplets=TripletContributions(F=F, E=E, D=D),
        global_eqn_ids=list(eqns),
        global_param_ids=list(params),
    )


# --- TripletContributions ---

def test_triplet_contributions_sum():
    total = sum([TripletContributions(5, 3, 2), TripletContributions(6, 1, 0)], TripletContributions())
    assert total == TripletContributions(F=11, E=4, D=2)
    assert total.total == 17


# --- TripletMatrix ---

def test_writes_overwrite_and_missing_reads_are_zero():
    m = TripletMatrix("F", (2, 3), capacity=2)
    m[0, 1] = 2.0
    m[0, 1] = 5.0
    assert m[0, 1] == 5.0
    assert m[1, 2] == 0.0
    assert m.nnz == 1
    assert (0, 1) in m
    assert list(m.keys()) == [(0, 1)]


def test_conversion_and_product():
    m = TripletMatrix("F", (2, 3), capacity=3)
    m[0, 0] = 1.0
    m[1, 2] = -2.0
    m[0, 2] = 4.0
    dense = np.array([[1.0, 0.0, 4.0], [0.0, 0.0, -2.0]])
    np.testing.assert_array_equal(m.toarray(), dense)
    assert isinstance(m.tocsr(), sp.csr_matrix)
    x = np.array([1.0, 2.0, 3.0])
    np.testing.assert_allclose(m.dot(x), dense @ x)
    np.testing.assert_allclose(m @ x, dense @ x)


def test_empty_matrix_product_is_zero():
    m = TripletMatrix("D", (3, 3), capacity=0)
    np.testing.assert_array_equal(m.dot(np.ones(3)), np.zeros(3))


def test_capacity_is_never_exceeded():
    m = TripletMatrix("E", (2, 2), capacity=1)
    m[0, 0] = 1.0
    with pytest.raises(SparseWriteError) as exc_info:
        m[1, 1] = 1.0
    assert "capacity" in str(exc_info.value)
    # Overwriting an existing key needs no new slot.
    m[0, 0] = 3.0
    assert m[0, 0] == 3.0


def test_out_of_bounds_write_is_rejected():
    m = TripletMatrix("F", (2, 2), capacity=4)
    with pytest.raises(SparseWriteError):
        m[2, 0] = 1.0
    with pytest.raises(SparseWriteError):
        m[0, -1] = 1.0
    assert m.nnz == 0


def test_bound_writer_budget_and_ownership():
    m = TripletMatrix("F", (3, 3), capacity=5)
    m.bind("a", 2)
    m[0, 0] = 1.0
    m[0, 1] = 1.0
    with pytest.raises(SparseWriteError) as exc_info:
        m[0, 2] = 1.0
    assert exc_info.value.block == "a"
    assert "budget of 2" in str(exc_info.value)
    m.unbind()

    m.bind("b", 3)
    with pytest.raises(SparseWriteError) as exc_info:
        m[0, 0] = 2.0
    assert "owned by block 'a'" in str(exc_info.value)
    m[1, 1] = 1.0
    m.unbind()

    assert m.owned_count("a") == 2
    assert m.owned_count("b") == 1
    assert m[0, 0] == 1.0


# --- SparseSystem ---

def test_system_shapes():
    system = SparseSystem(3, 4, TripletContributions(F=2, E=1, D=1), num_parameters=2, gradient_capacity=6)
    assert system.F.shape == (3, 4)
    assert system.E.capacity == 1
    assert system.C.shape == (3,)
    assert system.param_jacobian.shape == (3, 2)
    assert system.param_residual.shape == (3,)
    assert set(system.matrices) == {"F", "E", "D"}


def test_residual_and_jacobian():
    system = SparseSystem(2, 2, TripletContributions(F=2, E=1, D=1))
    system.F[0, 0] = 2.0
    system.F[1, 1] = -1.0
    system.E[0, 1] = 3.0
    system.D[1, 0] = 0.5
    system.C[:] = [1.0, -1.0]

    y = np.array([1.0, 2.0])
    dy = np.array([0.5, -1.0])
    np.testing.assert_allclose(system.residual(y, dy), [-(3.0 * -1.0 + 2.0 * 1.0 + 1.0), -(-2.0 - 1.0)])

    jac = system.jacobian(e_coeff=10.0)
    assert isinstance(jac, sp.csr_matrix)
    np.testing.assert_allclose(jac.toarray(), [[2.0, 30.0], [0.5, -1.0]])
    assert system.triplet_counts() == TripletContributions(F=2, E=1, D=1)


def test_contributions_from_enforces_block_budgets():
    system = SparseSystem(2, 2, TripletContributions(F=3, E=2, D=0))
    a = fake_block("a", F=1, E=1, eqns=[0])
    b = fake_block("b", F=2, E=1, eqns=[1])

    with system.contributions_from(a):
        system.F[0, 0] = 1.0
        with pytest.raises(SparseWriteError):
            system.F[0, 1] = 1.0
        with pytest.raises(SparseWriteError):
            system.D[0, 0] = 1.0

    with system.contributions_from(b):
        with pytest.raises(SparseWriteError):
            system.F[0, 0] = 7.0
        system.F[1, 0] = 1.0
        system.F[1, 1] = 1.0

    assert system.F[0, 0] == 1.0
    assert system.F.owned_count("b") == 2


def test_contributions_from_unbinds_on_error():
    system = SparseSystem(1, 1, TripletContributions(F=1))
    block = fake_block("a")
    with pytest.raises(RuntimeError):
        with system.contributions_from(block):
            raise RuntimeError("boom")
    # No writer is bound any more, so only the capacity limits new entries.
    system.F[0, 0] = 1.0
    assert system.F.nnz == 1


def test_gradient_budget_is_equations_times_parameters():
    system = SparseSystem(2, 4, TripletContributions(), num_parameters=2, gradient_capacity=4)
    block = fake_block("a", eqns=[0], params=[0, 1])
    with system.contributions_from(block):
        system.param_jacobian[0, 0] = 1.0
        system.param_jacobian[0, 1] = 2.0
        with pytest.raises(SparseWriteError):
            system.param_jacobian[1, 0] = 3.0
