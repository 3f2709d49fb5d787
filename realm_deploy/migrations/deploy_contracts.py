"""Deploys Base64 and Util as libraries, then Realm linked against both."""


def deploy_contracts(deployer, artifacts):
    realm = artifacts.require("Realm")
    util = artifacts.require("Util")
    base64 = artifacts.require("Base64")

    deployer.deploy(base64)
    deployer.link(base64, [util, realm])
    deployer.deploy(util)
    deployer.link(util, [realm])
    deployer.deploy(realm)
