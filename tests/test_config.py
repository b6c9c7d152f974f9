import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from xeris_wallet.config import BUNDLED_IDL, WalletConfig, resolve_config
from xeris_wallet.errors import ConfigError


class ConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.dir = Path(self._tmp.name)
        patcher = patch("xeris_wallet.config.DEFAULT_CONFIG_PATH", self.dir / "absent.toml")
        patcher.start()
        self.addCleanup(patcher.stop)

    def _write(self, text: str) -> Path:
        path = self.dir / "wallet.toml"
        path.write_text(text)
        return path

    def test_defaults_target_local_alpha_node(self) -> None:
        config = resolve_config(env={})
        self.assertEqual(config, WalletConfig())
        self.assertEqual(config.rpc_url, "http://127.0.0.1:4001")
        self.assertEqual(config.commitment, "confirmed")
        self.assertEqual(config.faucet_base, "http://127.0.0.1:4001")
        self.assertEqual(config.idl_path, BUNDLED_IDL)

    def test_file_then_env_then_overrides(self) -> None:
        path = self._write(
            "[wallet]\n"
            'rpc_url = "http://10.0.0.2:4001"\n'
            'commitment = "finalized"\n'
            "confirm_timeout = 5\n"
        )
        config = resolve_config(str(path), env={})
        self.assertEqual(config.rpc_url, "http://10.0.0.2:4001")
        self.assertEqual(config.commitment, "finalized")
        self.assertEqual(config.confirm_timeout, 5.0)

        config = resolve_config(str(path), env={"XERIS_RPC_URL": "http://env:4001"})
        self.assertEqual(config.rpc_url, "http://env:4001")
        self.assertEqual(config.commitment, "finalized")

        config = resolve_config(
            str(path),
            overrides={"rpc_url": "http://flag:4001", "commitment": None},
            env={"XERIS_RPC_URL": "http://env:4001"},
        )
        self.assertEqual(config.rpc_url, "http://flag:4001")
        self.assertEqual(config.commitment, "finalized")

    def test_config_path_from_env(self) -> None:
        path = self._write('[wallet]\nfaucet_url = "http://faucet:9000/"\n')
        config = resolve_config(env={"XERIS_WALLET_CONFIG": str(path)})
        self.assertEqual(config.faucet_base, "http://faucet:9000")

    def test_default_config_file_is_read_when_present(self) -> None:
        path = self._write('[wallet]\nstake_program_id = "Prog"\n')
        with patch("xeris_wallet.config.DEFAULT_CONFIG_PATH", path):
            config = resolve_config(env={})
        self.assertEqual(config.stake_program_id, "Prog")

    def test_relative_idl_path_resolves_against_config_dir(self) -> None:
        path = self._write('[wallet]\nidl_path = "idl/stake.json"\n')
        config = resolve_config(str(path), env={})
        self.assertEqual(config.idl_path, (self.dir / "idl" / "stake.json").resolve())

    def test_missing_explicit_config_is_an_error(self) -> None:
        with self.assertRaisesRegex(ConfigError, "file not found"):
            resolve_config(str(self.dir / "missing.toml"), env={})

    def test_rejects_unknown_keys_and_bad_values(self) -> None:
        cases = {
            '[wallet]\nrpc = "x"\n': "unknown key wallet.rpc",
            '[wallet]\nconfirm_timeout = "soon"\n': "must be a number",
            '[wallet]\nrpc_url = ""\n': "non-empty string",
            "wallet = 3\n": "must be a table",
            "[wallet\n": "Invalid config",
        }
        for text, message in cases.items():
            with self.subTest(text=text):
                path = self._write(text)
                with self.assertRaisesRegex(ConfigError, message):
                    resolve_config(str(path), env={})

    def test_rejects_unknown_commitment_and_non_positive_timeout(self) -> None:
        with self.assertRaisesRegex(ConfigError, "commitment must be one of"):
            resolve_config(env={"XERIS_COMMITMENT": "max"})
        with self.assertRaisesRegex(ConfigError, "confirm_timeout must be > 0"):
            resolve_config(overrides={"confirm_timeout": 0.0}, env={})


if __name__ == "__main__":
    unittest.main()
