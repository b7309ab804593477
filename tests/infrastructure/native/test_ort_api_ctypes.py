import ctypes
import os
import unittest
from unittest import mock

from ortbridge.infrastructure.native.python.ort_api_ctypes import (
    DEFAULT_ORT_API_VERSION,
    ORT_API_PROTOTYPES,
    ORT_API_SLOTS,
    ORT_API_VERSION_ENV,
    OrtApi,
    _resolve_api_version,
)


class TestOrtApiLayout(unittest.TestCase):
    def test_slots_are_unique(self):
        self.assertEqual(len(ORT_API_SLOTS), len(set(ORT_API_SLOTS)))

    def test_every_prototype_has_a_slot(self):
        for name in ORT_API_PROTOTYPES:
            with self.subTest(name=name):
                self.assertIn(name, ORT_API_SLOTS)

    def test_slot_offsets_match_c_header(self):
        ptr = ctypes.sizeof(ctypes.c_void_p)
        expected = {
            "CreateStatus": 0,
            "GetErrorMessage": 2,
            "GetTensorMutableData": 51,
            "GetStringTensorDataLength": 53,
            "GetStringTensorContent": 54,
            "GetTensorTypeAndShape": 65,
            "KernelInfoGetAttribute_float": 85,
            "KernelContext_GetInput": 90,
            "KernelContext_GetOutput": 91,
            "ReleaseStatus": 93,
            "ReleaseTensorTypeAndShapeInfo": 99,
        }
        for name, index in expected.items():
            with self.subTest(name=name):
                self.assertEqual(getattr(OrtApi, name).offset, index * ptr)
        self.assertEqual(ctypes.sizeof(OrtApi), len(ORT_API_SLOTS) * ptr)


class TestApiVersion(unittest.TestCase):
    def test_explicit_version_wins(self):
        with mock.patch.dict(os.environ, {ORT_API_VERSION_ENV: "7"}):
            self.assertEqual(_resolve_api_version(3), 3)

    def test_environment_version(self):
        with mock.patch.dict(os.environ, {ORT_API_VERSION_ENV: "16"}):
            self.assertEqual(_resolve_api_version(None), 16)

    def test_default_version(self):
        with mock.patch.dict(os.environ, {ORT_API_VERSION_ENV: ""}):
            self.assertEqual(_resolve_api_version(None), DEFAULT_ORT_API_VERSION)

    def test_invalid_environment_version(self):
        with mock.patch.dict(os.environ, {ORT_API_VERSION_ENV: "latest"}):
            with self.assertRaises(ValueError):
                _resolve_api_version(None)


if __name__ == "__main__":
    unittest.main()
