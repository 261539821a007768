"""
Tests for Ratelimit bucket state.
"""

import unittest

import httpx

from .ratelimit import Ratelimit

NOW = 1_700_000_000.0


class TestRatelimitConfig(unittest.TestCase):
    """Test suite for Ratelimit validation."""

    def testDefaultsAreIdle(self):
        ratelimit = Ratelimit()
        self.assertEqual(ratelimit.limit, 1)
        self.assertEqual(ratelimit.remaining, 1)
        self.assertFalse(ratelimit.isExhausted(NOW))
        self.assertEqual(ratelimit.getDelay(NOW), 0.0)

    def testInvalidLimit(self):
        with self.assertRaises(ValueError) as context:
            Ratelimit(limit=0)
        self.assertIn("limit must be positive", str(context.exception))

    def testInvalidWindow(self):
        with self.assertRaises(ValueError) as context:
            Ratelimit(window=0)
        self.assertIn("window must be positive", str(context.exception))

    def testNegativeRemainingClamped(self):
        self.assertEqual(Ratelimit(remaining=-3).remaining, 0)


class TestRatelimitState(unittest.TestCase):
    """Test suite for consuming, locking and renewing."""

    def testExhaustedUntilReset(self):
        ratelimit = Ratelimit(limit=5, remaining=0, reset=NOW + 2)
        self.assertTrue(ratelimit.isExhausted(NOW))
        self.assertAlmostEqual(ratelimit.getDelay(NOW), 2.0)
        self.assertFalse(ratelimit.isExhausted(NOW + 2))
        self.assertEqual(ratelimit.getDelay(NOW + 3), 0.0)

    def testExpiredOnceWindowIsOver(self):
        ratelimit = Ratelimit(limit=5, remaining=4, reset=NOW + 2)
        self.assertFalse(ratelimit.isExpired(NOW))
        self.assertTrue(ratelimit.isExpired(NOW + 2))
        self.assertTrue(Ratelimit().isExpired(NOW))

    def testConsumeNeverNegative(self):
        ratelimit = Ratelimit(limit=2, remaining=1)
        ratelimit.consume()
        ratelimit.consume()
        self.assertEqual(ratelimit.remaining, 0)

    def testLockFor(self):
        ratelimit = Ratelimit(limit=5, remaining=5)
        ratelimit.lockFor(1.5, now=NOW)
        self.assertEqual(ratelimit.remaining, 0)
        self.assertEqual(ratelimit.delay, 1.5)
        self.assertEqual(ratelimit.reset, NOW + 1.5)
        self.assertTrue(ratelimit.isExhausted(NOW + 1))

    def testRenewHeaderWindow(self):
        ratelimit = Ratelimit(limit=5, remaining=0, reset=NOW)
        ratelimit.renew(now=NOW)
        self.assertEqual(ratelimit.remaining, 5)
        self.assertEqual(ratelimit.reset, NOW)

    def testRenewLocalWindow(self):
        ratelimit = Ratelimit(limit=50, remaining=0, window=1.0)
        ratelimit.renew(now=NOW)
        self.assertEqual(ratelimit.remaining, 50)
        self.assertEqual(ratelimit.reset, NOW + 1.0)


class TestRatelimitHeaders(unittest.TestCase):
    """Test suite for updateFromHeaders()."""

    def testNoHeaders(self):
        ratelimit = Ratelimit()
        self.assertFalse(ratelimit.updateFromHeaders(httpx.Headers({"Content-Type": "application/json"}), NOW))
        self.assertEqual(ratelimit.remaining, 1)

    def testResetAfterPreferred(self):
        ratelimit = Ratelimit()
        headers = httpx.Headers(
            {
                "X-RateLimit-Limit": "5",
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(NOW + 100),
                "X-RateLimit-Reset-After": "1.25",
                "X-RateLimit-Bucket": "abcd1234",
            }
        )
        self.assertTrue(ratelimit.updateFromHeaders(headers, NOW))
        self.assertEqual(ratelimit.limit, 5)
        self.assertEqual(ratelimit.remaining, 0)
        self.assertEqual(ratelimit.reset, NOW + 1.25)
        self.assertEqual(ratelimit.delay, 1.25)
        self.assertEqual(ratelimit.bucketHash, "abcd1234")
        self.assertTrue(ratelimit.isExhausted(NOW))

    def testAbsoluteReset(self):
        ratelimit = Ratelimit()
        headers = httpx.Headers({"x-ratelimit-remaining": "3", "x-ratelimit-reset": str(NOW + 4)})
        self.assertTrue(ratelimit.updateFromHeaders(headers, NOW))
        self.assertEqual(ratelimit.remaining, 3)
        self.assertEqual(ratelimit.reset, NOW + 4)
        self.assertEqual(ratelimit.delay, 4)

    def testInvalidHeaderIgnored(self):
        ratelimit = Ratelimit(limit=2, remaining=2)
        headers = httpx.Headers({"X-RateLimit-Limit": "lots", "X-RateLimit-Remaining": "1"})
        self.assertTrue(ratelimit.updateFromHeaders(headers, NOW))
        self.assertEqual(ratelimit.limit, 2)
        self.assertEqual(ratelimit.remaining, 1)

    def testToDict(self):
        ratelimit = Ratelimit(limit=5, remaining=0, reset=NOW + 1, bucketHash="h")
        self.assertEqual(
            ratelimit.toDict(NOW),
            {
                "limit": 5,
                "remaining": 0,
                "reset": NOW + 1,
                "delay": 1.0,
                "exhausted": True,
                "bucketHash": "h",
            },
        )


if __name__ == "__main__":
    unittest.main()
