import pytest

from k1 import PrivateKey


def multiple_of_g(k):
    return PrivateKey.from_int(k).public_key


@pytest.fixture
def g2():
    return multiple_of_g(2)


@pytest.fixture
def g3():
    return multiple_of_g(3)


@pytest.fixture
def g5():
    return multiple_of_g(5)


@pytest.fixture
def g6():
    return multiple_of_g(6)


@pytest.fixture
def keypair():
    key = PrivateKey.generate()
    return key, key.public_key
