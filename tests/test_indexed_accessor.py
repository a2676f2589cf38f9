from __future__ import annotations

import importlib.util
import unittest


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for accessor tests")
class RectangularAccessTests(unittest.TestCase):
    def test_full_index_read(self) -> None:
        import jax.numpy as jnp

        from layout_jax import get_value

        arr = jnp.arange(6).reshape((2, 3))
        self.assertEqual(int(get_value(arr, (1, 2))), 5)
        self.assertEqual(int(get_value(arr, [0, 1])), 1)

    def test_one_past_the_end_raises(self) -> None:
        import jax.numpy as jnp

        from layout_jax import IndexOutOfRange, get_value

        arr = jnp.asarray([10, 20, 30])
        with self.assertRaises(IndexOutOfRange) as ctx:
            get_value(arr, (3,))
        self.assertEqual(ctx.exception.dim, 0)
        self.assertEqual(ctx.exception.bound, 3)
        self.assertIsInstance(ctx.exception, IndexError)

    def test_negative_and_too_long_indices_raise(self) -> None:
        import jax.numpy as jnp

        from layout_jax import IndexOutOfRange, get_value

        arr = jnp.zeros((2, 2))
        with self.assertRaises(IndexOutOfRange):
            get_value(arr, (-1, 0))
        with self.assertRaises(IndexOutOfRange):
            get_value(arr, (0, 0, 0))

    def test_try_get_reports_not_found(self) -> None:
        import jax.numpy as jnp

        from layout_jax import NOT_FOUND, try_get_value

        arr = jnp.asarray([10, 20, 30])
        self.assertIs(try_get_value(arr, (3,)), NOT_FOUND)
        self.assertIsNone(try_get_value(arr, (3,), default=None))
        self.assertEqual(int(try_get_value(arr, (2,))), 30)

    def test_set_returns_updated_array(self) -> None:
        import jax.numpy as jnp

        from layout_jax import IndexOutOfRange, set_value

        arr = jnp.zeros((2, 2), dtype=jnp.int32)
        updated = set_value(arr, 7, (1, 0))
        self.assertEqual(updated.tolist(), [[0, 0], [7, 0]])
        self.assertEqual(arr.tolist(), [[0, 0], [0, 0]])
        with self.assertRaises(IndexOutOfRange):
            set_value(arr, 1, (2, 0))


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for accessor tests")
class JaggedAccessTests(unittest.TestCase):
    def test_deep_read_follows_rows(self) -> None:
        from layout_jax import get_value

        value = [[[1, 2], [3]], [[4, 5, 6]]]
        self.assertEqual(get_value(value, (1, 0, 2)), 6)
        self.assertEqual(get_value(value, (0, 1, 0)), 3)

    def test_partial_index_returns_sub_array(self) -> None:
        from layout_jax import get_value

        value = [[[1, 2], [3]], [[4, 5, 6]]]
        self.assertEqual(get_value(value, (0,)), [[1, 2], [3]])
        self.assertIs(get_value(value, (0, 1)), value[0][1])
        self.assertIs(get_value(value, ()), value)

    def test_shallow_read_uses_first_position_only(self) -> None:
        from layout_jax import get_value

        value = [[1, 2], [3]]
        self.assertEqual(get_value(value, 1, deep=False), [3])
        self.assertEqual(get_value(value, (0, 1), deep=False), [1, 2])

    def test_short_ragged_row_raises_unless_try_get(self) -> None:
        from layout_jax import NOT_FOUND, IndexOutOfRange, get_value, try_get_value

        value = [[1, 2], [3]]
        with self.assertRaises(IndexOutOfRange) as ctx:
            get_value(value, (1, 1))
        self.assertEqual(ctx.exception.dim, 1)
        self.assertEqual(ctx.exception.bound, 1)
        self.assertIs(try_get_value(value, (1, 1)), NOT_FOUND)
        self.assertEqual(try_get_value(value, (0, 1)), 2)

    def test_try_get_upper_bound_is_inclusive(self) -> None:
        from layout_jax import NOT_FOUND, try_get_value

        value = [[1, 2, 3], [4, 5, 6]]
        self.assertEqual(try_get_value(value, (1, 1), upper_bound=(1, 1)), 5)
        self.assertIs(try_get_value(value, (1, 2), upper_bound=(1, 1)), NOT_FOUND)

    def test_index_past_a_leaf_raises(self) -> None:
        from layout_jax import IndexOutOfRange, get_value

        with self.assertRaises(IndexOutOfRange):
            get_value([[1, 2]], (0, 0, 0))

    def test_read_into_rectangular_row(self) -> None:
        import jax.numpy as jnp

        from layout_jax import get_value

        value = [jnp.asarray([[1, 2], [3, 4]]), jnp.asarray([[5]])]
        self.assertEqual(int(get_value(value, (0, 1, 0))), 3)
        self.assertEqual(get_value(value, (0, 1)).tolist(), [3, 4])

    def test_deep_write_in_place(self) -> None:
        from layout_jax import set_value

        value = [[1, 2], [3]]
        out = set_value(value, 9, (1, 0))
        self.assertIs(out, value)
        self.assertEqual(value, [[1, 2], [9]])

        set_value(value, [7, 8], (0,))
        self.assertEqual(value, [[7, 8], [9]])

    def test_shallow_write_replaces_row(self) -> None:
        from layout_jax import set_value

        value = [[1], [2]]
        set_value(value, [5, 6], (1, 0), deep=False)
        self.assertEqual(value, [[1], [5, 6]])

    def test_write_into_rectangular_row_replaces_it(self) -> None:
        import jax.numpy as jnp

        from layout_jax import set_value

        row = jnp.zeros(3, dtype=jnp.int32)
        value = [row]
        set_value(value, 4, (0, 2))
        self.assertEqual(value[0].tolist(), [0, 0, 4])
        self.assertEqual(row.tolist(), [0, 0, 0])

    def test_write_into_tuple_row_is_rejected(self) -> None:
        from layout_jax import LayoutError, set_value

        with self.assertRaises(LayoutError):
            set_value([(1, 2)], 5, (0, 1))

    def test_write_out_of_range_raises(self) -> None:
        from layout_jax import IndexOutOfRange, set_value

        with self.assertRaises(IndexOutOfRange):
            set_value([[1], [2]], 0, (1, 1))


if __name__ == "__main__":
    unittest.main()
