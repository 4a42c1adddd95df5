from dataclasses import dataclass

from src.user_mvc.controller import Dispatcher
from src.user_mvc.core.services import PersistenceGateway
from src.user_mvc.entities.user import UserRepository
from src.user_mvc.runtime.config.config_data import ConfigData


@dataclass
class ApplicationDependencies:
    config: ConfigData
    gateway: PersistenceGateway
    users: UserRepository
    dispatcher: Dispatcher
