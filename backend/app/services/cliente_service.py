"""
Vistoria Naval API — Client Registry Service
==============================================

What:  CRUD for clientes (vessel owners), natural persons (CPF) or
       companies (CNPJ).
How:   Documents, CEP and phone are normalized before storage: digits only
       for documents and CEP, E.164 for phone, upper-case UF.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import BusinessRuleError, DatabaseError, NotFoundError, ValidationError
from app.models.cadastro import Cliente, Embarcacao
from app.schemas.cadastro import ClienteCreate, ClienteUpdate
from app.utils.validators import (
    converter_para_e164,
    limpar_cep,
    somente_digitos,
    validar_cep,
    validar_cnpj,
    validar_cpf,
    validar_email,
    validar_estado,
    validar_telefone_e164,
)

logger = logging.getLogger(__name__)


def normalizar_endereco(campos: Dict[str, Any]) -> Dict[str, Any]:
    """Cleans cep / estado in place. Shared by clientes and locais."""
    if campos.get("cep"):
        if not validar_cep(campos["cep"]):
            raise ValidationError(message="CEP inválido", field="cep")
        campos["cep"] = limpar_cep(campos["cep"])
    if campos.get("estado"):
        if not validar_estado(campos["estado"]):
            raise ValidationError(message="Estado inválido", field="estado")
        campos["estado"] = campos["estado"].upper()
    return campos


def _normalizar_documentos(campos: Dict[str, Any], tipo_pessoa: str) -> None:
    if tipo_pessoa == "FISICA":
        cpf = campos.get("cpf")
        if not cpf:
            raise ValidationError(message="CPF é obrigatório para pessoa física", field="cpf")
        if not validar_cpf(cpf):
            raise ValidationError(message="CPF inválido", field="cpf")
        campos["cpf"] = somente_digitos(cpf)
        campos["cnpj"] = None
    else:
        cnpj = campos.get("cnpj")
        if not cnpj:
            raise ValidationError(message="CNPJ é obrigatório para pessoa jurídica", field="cnpj")
        if not validar_cnpj(cnpj):
            raise ValidationError(message="CNPJ inválido", field="cnpj")
        campos["cnpj"] = somente_digitos(cnpj)
        campos["cpf"] = None


def _normalizar_contato(campos: Dict[str, Any]) -> None:
    if "telefone" in campos:
        telefone = campos.pop("telefone")
        if telefone:
            e164 = converter_para_e164(telefone)
            if not validar_telefone_e164(e164):
                raise ValidationError(message="Telefone inválido", field="telefone")
            campos["telefone_e164"] = e164
        else:
            campos["telefone_e164"] = None
    if campos.get("email"):
        if not validar_email(campos["email"]):
            raise ValidationError(message="Email inválido", field="email")
        campos["email"] = campos["email"].strip().lower()


class ClienteService:

    async def listar(
        self,
        db: AsyncSession,
        ativo: Optional[bool] = None,
        tipo_pessoa: Optional[str] = None,
        cpf: Optional[str] = None,
        cnpj: Optional[str] = None,
    ) -> List[Cliente]:
        query = select(Cliente)
        if ativo is not None:
            query = query.where(Cliente.ativo == ativo)
        if tipo_pessoa:
            query = query.where(Cliente.tipo_pessoa == tipo_pessoa)
        if cpf:
            query = query.where(Cliente.cpf == somente_digitos(cpf))
        if cnpj:
            query = query.where(Cliente.cnpj == somente_digitos(cnpj))
        try:
            result = await db.execute(query.order_by(Cliente.nome))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to list clients: %s", str(e))
            raise DatabaseError(context={"operation": "listar_clientes"})

    async def obter(self, db: AsyncSession, cliente_id: int) -> Cliente:
        cliente = await db.get(Cliente, cliente_id)
        if cliente is None:
            raise NotFoundError(resource="Cliente", resource_id=str(cliente_id))
        return cliente

    async def buscar_por_documento(self, db: AsyncSession, documento: str) -> Cliente:
        """11 digits search CPF, 14 digits search CNPJ."""
        digitos = somente_digitos(documento)
        if len(digitos) == 11:
            condicao = Cliente.cpf == digitos
        elif len(digitos) == 14:
            condicao = Cliente.cnpj == digitos
        else:
            raise ValidationError(
                message="Documento inválido. Use CPF (11 dígitos) ou CNPJ (14 dígitos)",
                field="documento",
            )
        cliente = (await db.execute(select(Cliente).where(condicao))).scalar_one_or_none()
        if cliente is None:
            raise NotFoundError(resource="Cliente", resource_id=digitos)
        return cliente

    async def _documento_em_uso(
        self, db: AsyncSession, cpf: Optional[str], cnpj: Optional[str], exceto_id: Optional[int] = None
    ) -> bool:
        condicoes = []
        if cpf:
            condicoes.append(Cliente.cpf == cpf)
        if cnpj:
            condicoes.append(Cliente.cnpj == cnpj)
        if not condicoes:
            return False
        query = select(Cliente.id).where(or_(*condicoes))
        if exceto_id is not None:
            query = query.where(Cliente.id != exceto_id)
        return (await db.execute(query)).first() is not None

    async def criar(self, db: AsyncSession, dados: ClienteCreate) -> Cliente:
        campos = dados.model_dump()
        if not campos["nome"].strip():
            raise ValidationError(message="Nome é obrigatório", field="nome")
        _normalizar_documentos(campos, campos["tipo_pessoa"])
        _normalizar_contato(campos)
        normalizar_endereco(campos)

        if await self._documento_em_uso(db, campos.get("cpf"), campos.get("cnpj")):
            raise ValidationError(message="CPF/CNPJ já cadastrado", field="documento")

        cliente = Cliente(**campos)
        try:
            db.add(cliente)
            await db.flush()
            await db.refresh(cliente)
        except SQLAlchemyError as e:
            logger.error("Failed to create client: %s", str(e))
            raise DatabaseError(context={"operation": "criar_cliente"})
        logger.info("Client %s created (%s)", cliente.id, cliente.tipo_pessoa)
        return cliente

    async def atualizar(self, db: AsyncSession, cliente_id: int, dados: ClienteUpdate) -> Cliente:
        cliente = await self.obter(db, cliente_id)
        campos = dados.model_dump(exclude_unset=True)

        tipo_pessoa = campos.get("tipo_pessoa") or cliente.tipo_pessoa
        if {"tipo_pessoa", "cpf", "cnpj"} & campos.keys():
            documentos = {
                "cpf": campos.get("cpf", cliente.cpf),
                "cnpj": campos.get("cnpj", cliente.cnpj),
            }
            _normalizar_documentos(documentos, tipo_pessoa)
            if await self._documento_em_uso(
                db, documentos["cpf"], documentos["cnpj"], exceto_id=cliente_id
            ):
                raise ValidationError(message="CPF/CNPJ já cadastrado", field="documento")
            campos.update(documentos)
        _normalizar_contato(campos)
        normalizar_endereco(campos)

        for chave, valor in campos.items():
            setattr(cliente, chave, valor)
        try:
            await db.flush()
            await db.refresh(cliente)
        except SQLAlchemyError as e:
            logger.error("Failed to update client %s: %s", cliente_id, str(e))
            raise DatabaseError(context={"cliente_id": cliente_id})
        return cliente

    async def deletar(self, db: AsyncSession, cliente_id: int) -> Cliente:
        cliente = await self.obter(db, cliente_id)
        embarcacoes = (
            await db.execute(
                select(func.count(Embarcacao.id)).where(Embarcacao.cliente_id == cliente_id)
            )
        ).scalar() or 0
        if embarcacoes:
            raise BusinessRuleError(
                message=(
                    "Não é possível excluir cliente com embarcações vinculadas. "
                    f"Este cliente possui {embarcacoes} embarcação(ões) cadastrada(s)."
                ),
                context={"embarcacoes": embarcacoes},
            )
        await db.delete(cliente)
        await db.flush()
        return cliente

    async def alternar_status(self, db: AsyncSession, cliente_id: int) -> Cliente:
        cliente = await self.obter(db, cliente_id)
        cliente.ativo = not cliente.ativo
        await db.flush()
        return cliente


# ── Singleton Instance ────────────────────────────────────────────────────
cliente_service = ClienteService()
