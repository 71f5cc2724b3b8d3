import pytest

from keycert.algorithms import Algorithm
from keycert.codec import parse_private_key_openssh_pem, parse_private_key_pem
from keycert.exceptions import UnsupportedKeyTypeError
from keycert.pem import decode_pem_block
from keycert.public_key import (
    export_public_key_artifacts,
    fingerprint_sha256,
    public_key_from_private_key_openssh,
    public_key_from_private_key_pem,
    public_key_id,
)

RSA_AUTHORIZED_KEY = (
    "ssh-rsa AAAAB3NzaC1yc2EAAAADAQABAAABAQC09M+Z+5/PkGngPdF+dawFB/ZEtKL90XioBF3heNMEkKWivKTEufOnWsUYHfgLrb"
    "BQORXvtm1HzNU3pUhAfIv2BTrM1oyAMD6gfeaV7pMbim5YJYTxrWUQSaNWsAnKc7QVhLghzeBBKMPnknUwUzwHkRCQj3aVxtek3shT"
    "Ce5POMIp2xDA82+Ap2/0kj17CGxM2Ibak/1MjcPQ8liZfNGDZQyfLUf5nCE5DCxOFjFGhCIjJ/h30dBy62jCa7Gb/cmqp4Lj5OWS0Z"
    "RdT050oY/Z7WMETv67V8g7FHE7nlivZJLh6V9ariTOzl2MY8PdbYvuCcEifRMEdqC4sZWkdFkj"
)
RSA_FINGERPRINT_MD5 = "53:84:55:d5:d5:e6:d9:c4:9c:99:7d:80:b1:f6:77:e5"
RSA_FINGERPRINT_SHA256 = "SHA256:QJIZOcrwRZ/2IWZrSQXz5fsLf096YKIXs1Ad/4DgW98"
RSA_KEY_ID = "6c35becf32145609ef96b83616de3a2cf0ab410c"

EC_P256_AUTHORIZED_KEY = (
    "ecdsa-sha2-nistp256 AAAAE2VjZHNhLXNoYTItbmlzdHAyNTYAAAAIbmlzdHAyNTYAAABBBChOjeWa6olJKlGofFVx9WOu2o/z"
    "kdr9/CHlq1X5hZFA23FnyPYM97tjO7a2H4euGoHyYX5F2sozVrx7TMQiMJ8="
)
EC_P256_FINGERPRINT_MD5 = "a3:40:45:e1:2f:a9:ee:6d:e4:43:0d:09:85:db:9e:7b"
EC_P256_FINGERPRINT_SHA256 = "SHA256:hRWr0F/VWfMQJZv+pvWNousCMVW5MIruzJyqn4sx6O4"

ED25519_AUTHORIZED_KEY = "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIEcK426ixAQv5sZ4/mgGQCtTEV0f6KLRxQ/pZsFoBwEt"
ED25519_FINGERPRINT_MD5 = "a0:79:bb:d7:fa:f7:5b:43:04:65:70:c1:37:67:b0:67"
ED25519_FINGERPRINT_SHA256 = "SHA256:Xo1nmO4JLyk2Zpf/kZMC4RO4C5YuK+A8xLkIUP5f8Js"


def test_rsa_known_answers(key_pem):
    private_key, _ = parse_private_key_pem(key_pem("rsa_pkcs1.pem"))
    artifacts = export_public_key_artifacts(private_key)

    assert artifacts.public_key_openssh == RSA_AUTHORIZED_KEY + "\n"
    assert artifacts.public_key_fingerprint_md5 == RSA_FINGERPRINT_MD5
    assert artifacts.public_key_fingerprint_sha256 == RSA_FINGERPRINT_SHA256
    assert artifacts.has_ssh_representation


def test_rsa_public_pem_matches_openssl(key_pem):
    private_key, _ = parse_private_key_pem(key_pem("rsa_pkcs1.pem"))
    artifacts = export_public_key_artifacts(private_key)

    assert artifacts.public_key_pem.startswith("-----BEGIN PUBLIC KEY-----")
    assert decode_pem_block(artifacts.public_key_pem).der == decode_pem_block(key_pem("rsa_public.pem")).der


def test_ecdsa_p256_known_answers(key_pem):
    private_key, _ = parse_private_key_pem(key_pem("ec_p256_sec1.pem"))
    artifacts = export_public_key_artifacts(private_key)

    assert artifacts.public_key_openssh == EC_P256_AUTHORIZED_KEY + "\n"
    assert artifacts.public_key_fingerprint_md5 == EC_P256_FINGERPRINT_MD5
    assert artifacts.public_key_fingerprint_sha256 == EC_P256_FINGERPRINT_SHA256


def test_ed25519_authorized_key(key_pem):
    private_key, _ = parse_private_key_openssh_pem(key_pem("ed25519_openssh.pem"))
    artifacts = export_public_key_artifacts(private_key)
    assert artifacts.public_key_openssh == ED25519_AUTHORIZED_KEY + "\n"
    assert artifacts.public_key_fingerprint_md5 == ED25519_FINGERPRINT_MD5
    assert artifacts.public_key_fingerprint_sha256 == ED25519_FINGERPRINT_SHA256


def test_p224_has_no_ssh_representation(key_pem):
    private_key, _ = parse_private_key_pem(key_pem("ec_p224_sec1.pem"))
    artifacts = export_public_key_artifacts(private_key)

    assert artifacts.public_key_pem.startswith("-----BEGIN PUBLIC KEY-----")
    assert artifacts.public_key_openssh == ""
    assert artifacts.public_key_fingerprint_md5 == ""
    assert artifacts.public_key_fingerprint_sha256 == ""
    assert not artifacts.has_ssh_representation


def test_key_id_is_sha1_of_spki(key_pem):
    private_key, _ = parse_private_key_pem(key_pem("rsa_pkcs8.pem"))
    assert public_key_id(private_key.public_key()) == RSA_KEY_ID


def test_fingerprint_sha256_is_unpadded():
    fingerprint = fingerprint_sha256(b"wire")
    assert fingerprint.startswith("SHA256:")
    assert not fingerprint.endswith("=")
    assert len(fingerprint) == len("SHA256:") + 43


def test_public_key_from_either_encoding(key_pem):
    from_pem = public_key_from_private_key_pem(key_pem("rsa_pkcs1.pem"))
    from_openssh = public_key_from_private_key_openssh(key_pem("rsa_openssh.pem"))

    assert from_pem.algorithm is Algorithm.RSA
    assert from_pem.id == RSA_KEY_ID
    assert from_openssh == from_pem


def test_export_requires_a_key():
    with pytest.raises(UnsupportedKeyTypeError):
        export_public_key_artifacts("not a key")
