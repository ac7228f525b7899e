from dishka import from_context, provide

from stockroom.config import Config
from stockroom.domain.auth.model.principal import Principal
from stockroom.domain.user.command.change_status import ChangeUserStatusHandler
from stockroom.domain.user.command.create_user import CreateUserHandler
from stockroom.domain.user.command.reconcile_area import ReconcileAreaWarehousesHandler
from stockroom.domain.user.command.update_user import UpdateUserHandler
from stockroom.domain.user.port.repository import (
    AssignmentHistoryRepository,
    AssignmentRepository,
    UserEnablementHistoryRepository,
    UserRepository,
)
from stockroom.domain.user.query.assignment_history import (
    GetAssignmentHistoryHandler,
    GetRecentAssignmentHistoryHandler,
)
from stockroom.domain.user.query.candidates import ListAssignmentCandidatesHandler
from stockroom.domain.user.query.enablement_history import GetEnablementHistoryHandler
from stockroom.domain.user.service.history import HistoryRecorder
from stockroom.domain.user.service.reconciler import AssignmentLocks, AssignmentReconciler
from stockroom.domain.user.service.user import UserService
from stockroom.util.di.base import Provider
from stockroom.util.di.scope import Scope


class UserProvider(Provider):
    """DI provider for the user/assignment domain: services and handlers."""

    config = from_context(provides=Config, scope=Scope.APP)
    principal = from_context(provides=Principal, scope=Scope.UOW)

    # Shared across requests so same-link operations serialize process-wide
    @provide(scope=Scope.APP)
    def get_assignment_locks(self) -> AssignmentLocks:
        return AssignmentLocks()

    # Services
    @provide(scope=Scope.UOW)
    def get_reconciler(
        self, assignment_repo: AssignmentRepository, locks: AssignmentLocks, config: Config
    ) -> AssignmentReconciler:
        return AssignmentReconciler(
            _assignment_repo=assignment_repo,
            _locks=locks,
            _max_concurrency=config.reconcile.max_concurrency,
        )

    @provide(scope=Scope.UOW)
    def get_history_recorder(
        self,
        assignment_history_repo: AssignmentHistoryRepository,
        enablement_history_repo: UserEnablementHistoryRepository,
    ) -> HistoryRecorder:
        return HistoryRecorder(
            _assignment_history_repo=assignment_history_repo,
            _enablement_history_repo=enablement_history_repo,
        )

    @provide(scope=Scope.UOW)
    def get_user_service(
        self,
        user_repo: UserRepository,
        reconciler: AssignmentReconciler,
        recorder: HistoryRecorder,
    ) -> UserService:
        return UserService(_user_repo=user_repo, _reconciler=reconciler, _recorder=recorder)

    # Command Handlers
    @provide(scope=Scope.UOW)
    def get_update_user_handler(
        self, user_service: UserService, principal: Principal
    ) -> UpdateUserHandler:
        return UpdateUserHandler(user_service=user_service, _principal=principal)

    @provide(scope=Scope.UOW)
    def get_create_user_handler(
        self, user_service: UserService, principal: Principal
    ) -> CreateUserHandler:
        return CreateUserHandler(user_service=user_service, _principal=principal)

    @provide(scope=Scope.UOW)
    def get_change_status_handler(
        self, user_service: UserService, principal: Principal
    ) -> ChangeUserStatusHandler:
        return ChangeUserStatusHandler(user_service=user_service, _principal=principal)

    @provide(scope=Scope.UOW)
    def get_reconcile_area_handler(
        self, reconciler: AssignmentReconciler, principal: Principal
    ) -> ReconcileAreaWarehousesHandler:
        return ReconcileAreaWarehousesHandler(reconciler=reconciler, _principal=principal)

    # Query Handlers
    @provide(scope=Scope.UOW)
    def get_assignment_history_handler(
        self, recorder: HistoryRecorder, principal: Principal
    ) -> GetAssignmentHistoryHandler:
        return GetAssignmentHistoryHandler(history_recorder=recorder, _principal=principal)

    @provide(scope=Scope.UOW)
    def get_recent_assignment_history_handler(
        self, recorder: HistoryRecorder, principal: Principal
    ) -> GetRecentAssignmentHistoryHandler:
        return GetRecentAssignmentHistoryHandler(history_recorder=recorder, _principal=principal)

    @provide(scope=Scope.UOW)
    def get_enablement_history_handler(
        self, recorder: HistoryRecorder, principal: Principal
    ) -> GetEnablementHistoryHandler:
        return GetEnablementHistoryHandler(history_recorder=recorder, _principal=principal)

    @provide(scope=Scope.UOW)
    def get_candidates_handler(
        self, user_service: UserService, principal: Principal
    ) -> ListAssignmentCandidatesHandler:
        return ListAssignmentCandidatesHandler(user_service=user_service, _principal=principal)
