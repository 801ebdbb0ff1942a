from pathlib import Path
import unittest

from vdadeploy.cli import build_parser, main


class CliTest(unittest.TestCase):
    def test_install_arguments(self) -> None:
        parser = build_parser()
        args = parser.parse_args(
            [
                "install",
                "--host",
                "vda01",
                "--repository",
                "/srv/citrix",
                "--connectors",
                "cc1.corp cc2.corp",
                "--install-wem",
                "--no-pause",
            ]
        )
        self.assertEqual(args.command, "install")
        self.assertEqual(args.host, "vda01")
        self.assertEqual(args.repository, Path("/srv/citrix"))
        self.assertTrue(args.install_wem)
        self.assertTrue(args.no_pause)
        self.assertFalse(args.stop_on_success)
        self.assertIsNone(args.config)

    def test_probe_arguments(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--config", "vdadeploy.yaml", "probe", "--host", "vda01"])
        self.assertEqual(args.command, "probe")
        self.assertEqual(args.config, "vdadeploy.yaml")

    def test_empty_connector_list_is_rejected(self) -> None:
        exit_code = main(
            ["install", "--host", "vda01", "--repository", "/srv/citrix", "--connectors", " ", "--no-pause"]
        )
        self.assertEqual(exit_code, 2)


if __name__ == "__main__":
    unittest.main()
