"""
Tests for frame resources and the resource store.
"""

import unittest

from RS_Libs.errors import ResourceRevokedError
from RS_Libs.TimelineLib.frame_models import (
    LIFETIME_PERSISTENT,
    LIFETIME_REVOCABLE,
    Frame,
    ReconstructResult,
    ResourceStore,
)

from conftest import make_png


class TestResourceStore(unittest.TestCase):
    """Test handle creation, resolution and revocation."""

    def setUp(self):
        self.store = ResourceStore()

    def test_create_and_resolve(self):
        handle = self.store.create(b"abc")
        self.assertTrue(handle.startswith("blob:"))
        self.assertEqual(self.store.resolve(handle), b"abc")
        self.assertEqual(self.store.media_type(handle), "image/png")
        self.assertEqual(len(self.store), 1)

    def test_handles_are_unique(self):
        self.assertNotEqual(self.store.create(b"a"), self.store.create(b"a"))

    def test_revoke(self):
        handle = self.store.create(b"abc")
        self.assertTrue(self.store.revoke(handle))
        self.assertFalse(self.store.is_live(handle))
        with self.assertRaises(ResourceRevokedError) as ctx:
            self.store.resolve(handle)
        self.assertEqual(ctx.exception.handle, handle)

    def test_double_revoke_is_harmless(self):
        handle = self.store.create(b"abc")
        self.store.revoke(handle)
        self.assertFalse(self.store.revoke(handle))


class TestFrame(unittest.TestCase):
    """Test lifetime dispatch on frames."""

    def setUp(self):
        self.store = ResourceStore()
        self.png = make_png(6, 5)

    def test_persistent_frame(self):
        frame = Frame.persistent(self.png)
        self.assertEqual(frame.lifetime, LIFETIME_PERSISTENT)
        self.assertEqual(frame.read_bytes(), self.png)
        frame.release()
        self.assertEqual(frame.read_bytes(), self.png)

    def test_revocable_frame_release(self):
        frame = Frame.revocable(self.png, self.store)
        self.assertEqual(frame.lifetime, LIFETIME_REVOCABLE)
        self.assertEqual(frame.read_bytes(), self.png)

        frame.release()

        self.assertEqual(len(self.store), 0)
        with self.assertRaises(ResourceRevokedError):
            frame.read_bytes()

    def test_copy_gets_own_handle(self):
        """Releasing a copy leaves the original readable."""
        frame = Frame.revocable(self.png, self.store)
        copy = frame.copy(self.store)

        self.assertNotEqual(copy.resource.handle, frame.resource.handle)
        copy.release()
        self.assertEqual(frame.read_bytes(), self.png)

    def test_copy_of_persistent_frame(self):
        frame = Frame.persistent(self.png)
        copy = frame.copy(self.store)
        self.assertEqual(copy.lifetime, LIFETIME_PERSISTENT)
        self.assertEqual(len(self.store), 0)

    def test_natural_size(self):
        self.assertEqual(Frame.persistent(self.png).natural_size(), (6, 5))

    def test_unknown_resource_type(self):
        with self.assertRaises(TypeError):
            Frame("not a resource").read_bytes()


class TestReconstructResult(unittest.TestCase):

    def test_ok(self):
        self.assertTrue(ReconstructResult(data=b"GIF89a").ok)

    def test_failure(self):
        result = ReconstructResult.failure("boom", failed_frame=2)
        self.assertFalse(result.ok)
        self.assertEqual(result.failed_frame, 2)


if __name__ == "__main__":
    unittest.main()
