# Copyright 2026 The rexiv2-python Authors. All rights reserved.
# This file is licensed to you under the Apache License,
# Version 2.0 (http://www.apache.org/licenses/LICENSE-2.0)
# or the MIT license (http://opensource.org/licenses/MIT),
# at your option.

# Unless required by applicable law or agreed to in writing,
# this software is distributed on an "AS IS" BASIS, WITHOUT
# WARRANTIES OR REPRESENTATIONS OF ANY KIND, either express or
# implied. See the LICENSE-MIT and LICENSE-APACHE files for the
# specific language governing permissions and limitations under
# each license.

import threading
import concurrent.futures
import unittest
from unittest import mock

from rexiv2 import Metadata, MediaType, Rexiv2Error as Error
from rexiv2 import rexiv2 as bindings

from test_unit_tests import PNG_DATA, requires_gexiv2

# Note: each thread works on its own Metadata. Handles are not shared
# between threads, and the process-wide XMP namespace table is not touched.


class TestInitializationWithThreads(unittest.TestCase):
    def test_concurrent_initialize_loads_once(self):
        lib = mock.MagicMock(name="gexiv2")
        lib.gexiv2_initialize.return_value = 1
        glib = mock.MagicMock(name="glib")
        barrier = threading.Barrier(8)

        with mock.patch.object(bindings, "_natives",
                               bindings._NativeLibraries()), \
                mock.patch.object(bindings, "dynamically_load_library",
                                  return_value=lib) as load_library, \
                mock.patch.object(bindings, "dynamically_load_glib",
                                  return_value=glib):

            def initialize():
                barrier.wait()
                bindings.initialize()

            threads = [threading.Thread(target=initialize) for _ in range(8)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

            load_library.assert_called_once_with()
            lib.gexiv2_initialize.assert_called_once_with()
            self.assertTrue(bindings._natives.initialized)


@requires_gexiv2
class TestMetadataWithThreads(unittest.TestCase):
    def test_buffer_read(self):
        def read_metadata():
            with Metadata.from_buffer(PNG_DATA) as meta:
                return meta.get_media_type(), meta.get_pixel_width()

        with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
            futures = [executor.submit(read_metadata) for _ in range(2)]
            results = [f.result() for f in futures]

        self.assertEqual(results, [(MediaType.PNG, 1), (MediaType.PNG, 1)])

    def test_parallel_write_and_read(self):
        def tag_image(index):
            with Metadata.from_buffer(PNG_DATA) as meta:
                meta.set_tag_string("Exif.Image.ImageDescription", f"image {index}")
                return meta.get_tag_string("Exif.Image.ImageDescription")

        with concurrent.futures.ThreadPoolExecutor(max_workers=4) as executor:
            results = list(executor.map(tag_image, range(16)))

        self.assertEqual(results, [f"image {i}" for i in range(16)])

    def test_errors_in_threads_are_classified(self):
        corrupted = bytearray(PNG_DATA)
        corrupted[1], corrupted[2] = corrupted[2], corrupted[1]

        def open_corrupted():
            try:
                Metadata.from_buffer(bytes(corrupted))
            except Error.Internal as e:
                return e
            return None

        with concurrent.futures.ThreadPoolExecutor(max_workers=4) as executor:
            futures = [executor.submit(open_corrupted) for _ in range(8)]
            errors = [f.result() for f in futures]

        for error in errors:
            self.assertIsInstance(error, Error.Internal)


if __name__ == '__main__':
    unittest.main()
