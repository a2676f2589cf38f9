from __future__ import annotations

import importlib.util
import math
import unittest


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for index enumeration tests")
class IndexEnumeratorTests(unittest.TestCase):
    SHAPES = [(), (1,), (4,), (2, 3), (3, 1, 2), (2, 2, 2, 2), (0,), (3, 0), (2, 0, 4)]

    def test_count_bounds_and_uniqueness(self) -> None:
        from layout_jax import IndexSpace

        for extents in self.SHAPES:
            with self.subTest(extents=extents):
                indices = list(IndexSpace(extents))
                self.assertEqual(len(indices), math.prod(extents))
                self.assertEqual(len(set(indices)), len(indices))
                for index in indices:
                    self.assertEqual(len(index), len(extents))
                    for pos, extent in zip(index, extents):
                        self.assertGreaterEqual(pos, 0)
                        self.assertLess(pos, extent)

    def test_last_dimension_varies_fastest(self) -> None:
        from layout_jax import iter_indices

        self.assertEqual(
            list(iter_indices((2, 3))),
            [(0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (1, 2)],
        )

    def test_empty_shape_yields_nothing(self) -> None:
        from layout_jax import IndexSpace, Shape

        space = IndexSpace(Shape((5, 0)))
        self.assertEqual(len(space), 0)
        self.assertEqual(list(space), [])

    def test_space_is_restartable_and_deterministic(self) -> None:
        from layout_jax import IndexSpace, Shape

        shape = Shape((2, 2, 3))
        space = IndexSpace(shape)
        first = list(space)
        second = list(space)
        self.assertEqual(first, second)
        self.assertEqual(shape.extents, (2, 2, 3))

        partial = iter(space)
        next(partial)
        self.assertEqual(list(space), first)

    def test_membership_checks_bounds(self) -> None:
        from layout_jax import IndexSpace

        space = IndexSpace((2, 3))
        self.assertIn((1, 2), space)
        self.assertNotIn((2, 0), space)
        self.assertNotIn((0, -1), space)
        self.assertNotIn((0,), space)

    def test_ravel_and_unravel_follow_enumeration_order(self) -> None:
        from layout_jax import IndexSpace

        space = IndexSpace((3, 1, 4))
        for offset, index in enumerate(space):
            with self.subTest(index=index):
                self.assertEqual(space.ravel(index), offset)
                self.assertEqual(space.unravel(offset), index)

    def test_ravel_rejects_out_of_range(self) -> None:
        from layout_jax import IndexOutOfRange, IndexSpace

        space = IndexSpace((2, 2))
        with self.assertRaises(IndexOutOfRange) as ctx:
            space.ravel((0, 2))
        self.assertEqual(ctx.exception.dim, 1)
        self.assertEqual(ctx.exception.bound, 2)
        with self.assertRaises(IndexOutOfRange):
            space.unravel(4)


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for index enumeration tests")
class ValueIndexTests(unittest.TestCase):
    def test_ragged_rows_are_visited_up_to_their_real_length(self) -> None:
        from layout_jax import iter_value_indices

        value = [[1, 2, 3], [4], []]
        self.assertEqual(list(iter_value_indices(value, 2)), [(0, 0), (0, 1), (0, 2), (1, 0)])

    def test_uniform_value_matches_shape_enumeration(self) -> None:
        from layout_jax import iter_indices, iter_value_indices

        value = [[[0, 1], [2, 3]], [[4, 5], [6, 7]]]
        self.assertEqual(list(iter_value_indices(value, 3)), list(iter_indices((2, 2, 2))))

    def test_rectangular_rows_inside_jagged_value(self) -> None:
        import jax.numpy as jnp

        from layout_jax import iter_value_indices

        value = [jnp.zeros((2,)), jnp.zeros((1,))]
        self.assertEqual(list(iter_value_indices(value, 2)), [(0, 0), (0, 1), (1, 0)])

    def test_leaf_before_full_rank_is_a_shape_error(self) -> None:
        from layout_jax import ShapeError, iter_value_indices

        with self.assertRaises(ShapeError):
            list(iter_value_indices([[1, 2], 3], 2))


if __name__ == "__main__":
    unittest.main()
